from __future__ import annotations


class SchemaMismatchError(ValueError):
    """Input table does not carry the columns the run was configured for."""

    def __init__(self, missing, where: str = "input table"):
        self.missing = list(missing)
        super().__init__(f"{where}: missing column(s) {', '.join(self.missing)}")


class UnknownCategoryError(ValueError):
    """A categorical value outside the known domain of a column."""

    def __init__(self, column: str, values):
        self.column = column
        self.values = sorted(str(v) for v in values)
        super().__init__(f"column '{column}': unknown value(s) {self.values}")
