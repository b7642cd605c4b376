"""Import of bank statements, delimited exports and settlement forms into the ledger."""

__version__ = "0.1.0"


# The CLI is imported lazily so the domain and database layers load without click
def __getattr__(name):
    if name == "main":
        from ledgerimport.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
