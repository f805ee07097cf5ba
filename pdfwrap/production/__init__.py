"""Batch production package.

Claims pending queue rows, renders each into a PDF with the external report
renderer, overlays the letterhead, and secures the results with the
external PDF tool.
"""
