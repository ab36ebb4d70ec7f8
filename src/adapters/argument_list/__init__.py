from adapters.argument_list.parser import ArgumentListParser

__all__ = [
    "ArgumentListParser",
]
