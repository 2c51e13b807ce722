"""Errors raised while reading a receipt export, before any analysis runs."""


class ReceiptDataError(ValueError):
    """The export can't be turned into line items."""


class UnsupportedFileTypeError(ReceiptDataError):
    pass


class EmptyReceiptFileError(ReceiptDataError):
    pass


class MissingColumnsError(ReceiptDataError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(
            f"Missing required columns: {', '.join(missing)}. Please check your file format."
        )
