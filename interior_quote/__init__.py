"""
Interior design quotation tool.

Rate cards seed line items, line items are priced by the quote calculator,
and rooms roll up into a quote with tax, discount and grand total.
"""
