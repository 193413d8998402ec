"""
_utils.py
=========
General-purpose helpers for NEWICK handling.

These are standalone functions that don't depend on the main classes.
"""


def format_newick(newick: str) -> str:
    """
    Format a NEWICK string for consistent representation.

    Ensures the NEWICK string:
    - Ends with a semicolon
    - Has no leading/trailing whitespace

    Examples
    --------
    >>> format_newick('((A:1,B:1):1,(C:1,D:1):1)')
    '((A:1,B:1):1,(C:1,D:1):1);'

    >>> format_newick('  ((A,B),C);  ')
    '((A,B),C);'
    """
    newick = newick.strip()
    if not newick.endswith(";"):
        newick += ";"
    return newick


def is_multifurcating(newick: str) -> bool:
    """
    Return True if *newick* has a node with more than two children.

    A strictly bifurcating rooted tree with L leaves has L - 1 commas and
    L - 1 open parentheses; multifurcations add commas without parentheses.

    Examples
    --------
    >>> is_multifurcating('((A,B),(C,D));')
    False
    >>> is_multifurcating('(A,B,C);')
    True
    """
    s = newick.strip().rstrip(";")
    return s.count("(") < s.count(",")
