class InvalidIndex(IndexError):
    """A pair or flat relaxation index outside the valid range."""


class InvalidProblem(ValueError):
    """A problem the cutting plane solver cannot work on (e.g. no variables)."""


class RelaxationSolveError(RuntimeError):
    """
    The LP engine ended with a status the cutting plane loop cannot recover from
    """

    def __init__(self, status):
        self.status = status
        super().__init__(f"Relaxation problem status: {status}")
