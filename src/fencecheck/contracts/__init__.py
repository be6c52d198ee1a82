from .validate import load_catalog, validate, validate_self

__all__ = ["load_catalog", "validate", "validate_self"]
