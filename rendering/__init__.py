"""
Contract PDF rendering.

Lays out contract text page by page, finds the party signature labels in the
body and embeds the captured signature images there.
"""
