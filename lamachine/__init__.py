"""La Machine: a constraint-enforcing streaming runner for text generators.

The runner races an LLM against a formal writing constraint (lipogram,
tautogram, snowball, ...), validating the text while it streams and rolling
it back to a clean boundary when the constraint breaks.
"""

__version__ = "0.1.0"
