"""Accounting app: daily turnover, B2B revenue, cash control and the cash float."""
