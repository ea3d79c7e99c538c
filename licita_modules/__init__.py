"""
Licita Modules.

Domain modules built on the licita kernel and engines.  Each module owns
its models, workflows, config schema, ORM mapping and service facade.
"""
