"""
Alternate views of a session: a Rich tree and folded stacks for Speedscope.
"""
