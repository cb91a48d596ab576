from .money import format_mxn, is_zero_or_blank, parse_currency

__all__ = ["parse_currency", "format_mxn", "is_zero_or_blank"]
