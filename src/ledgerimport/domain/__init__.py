"""Domain layer for ledgerimport application."""

__all__ = [
    "AccountService",
    "ImportService",
]


# Services are imported lazily: the database layer imports domain entities,
# and the services import the database layer.
def __getattr__(name):
    if name == "AccountService":
        from ledgerimport.domain.account import AccountService
        return AccountService
    if name == "ImportService":
        from ledgerimport.domain.importer import ImportService
        return ImportService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
