"""dotwalk custom exceptions."""


class DotwalkError(Exception):
    """Base exception for dotwalk errors."""


class StartNodeNotFoundError(DotwalkError):
    """Start node query did not resolve to any node in the graph."""

    def __init__(self, query: str) -> None:
        super().__init__(f'Start node "{query}" not found')
        self.query = query


class SourceReadError(DotwalkError):
    """Error fetching or reading the DOT source."""


class AnalysisCancelled(DotwalkError):
    """The run was superseded by a newer request."""

    def __init__(self, run_id: int) -> None:
        super().__init__(f"Run {run_id} was superseded")
        self.run_id = run_id
