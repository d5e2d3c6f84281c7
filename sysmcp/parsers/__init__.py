"""Pure text parsers for probe output.

Parsers never raise and never log: unparseable input yields the domain's
zero-value record.
"""
