from adapters.api_description.parser import ApiDescriptionParser

__all__ = [
    "ApiDescriptionParser",
]
