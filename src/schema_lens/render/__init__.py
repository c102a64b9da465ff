"""Row rendering modules."""

from schema_lens.render.rows import Row, RowLabelVisitor, fill_names, iter_rows, name_for_path

__all__ = ["Row", "RowLabelVisitor", "fill_names", "iter_rows", "name_for_path"]
