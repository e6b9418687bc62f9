class DataFormatError(ValueError):
    """Input data is unreadable, malformed, or outside the category domain."""


class InsufficientDataError(ValueError):
    """The data cannot identify the requested model.

    Raised, for example, when a response category is never observed for an
    item, which leaves its location parameter ill-posed.
    """

    def __init__(self, message: str, item_id: str | None = None) -> None:
        self.item_id = item_id
        super().__init__(message)
