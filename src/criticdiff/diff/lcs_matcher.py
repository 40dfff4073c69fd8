"""Weighted Longest Common Subsequence matching over sibling nodes.

Uses the standard dynamic-programming LCS algorithm, generalised so that
each candidate pair contributes an integer weight instead of ``1``.  The
result is the order-preserving set of pairs with the largest total weight;
the differencer turns it into EQUAL / UPDATE / DESCEND anchors and treats
everything between anchors as DELETE or INSERT.
"""

from __future__ import annotations

from collections.abc import Callable


def lcs_match(
    m: int,
    n: int,
    weight: Callable[[int, int], int],
) -> list[tuple[int, int]]:
    """Compute the maximum-weight order-preserving matching.

    Parameters
    ----------
    m:
        Number of old siblings.
    n:
        Number of new siblings.
    weight:
        ``weight(i, j)`` returns a positive integer when old sibling *i*
        and new sibling *j* may be aligned, and ``0`` otherwise.  It is
        called once per cell.

    Returns
    -------
    list[tuple[int, int]]
        ``(old_idx, new_idx)`` pairs, strictly increasing on both sides.

    Ties between alignments of equal total weight are broken while walking
    the table from the front: a match is preferred over a skip, and between
    two equal skips the one that keeps ``|i - j|`` smallest wins (old side
    first when both are equally close).
    """
    if m == 0 or n == 0:
        return []

    # dp[i][j] is the best total weight for old[i:] and new[j:];
    # w[i][j] caches the pair weight for the backtrack.
    dp: list[list[int]] = [[0] * (n + 1) for _ in range(m + 1)]
    w: list[list[int]] = [[0] * n for _ in range(m)]

    for i in range(m - 1, -1, -1):
        row = dp[i]
        below = dp[i + 1]
        w_row = w[i]
        for j in range(n - 1, -1, -1):
            best = below[j] if below[j] >= row[j + 1] else row[j + 1]
            pair = weight(i, j)
            if pair > 0:
                w_row[j] = pair
                diagonal = pair + below[j + 1]
                if diagonal > best:
                    best = diagonal
            row[j] = best

    pairs: list[tuple[int, int]] = []
    i = j = 0
    while i < m and j < n:
        pair = w[i][j]
        if pair > 0 and dp[i][j] == pair + dp[i + 1][j + 1]:
            pairs.append((i, j))
            i += 1
            j += 1
            continue
        skip_old = dp[i][j] == dp[i + 1][j]
        skip_new = dp[i][j] == dp[i][j + 1]
        if skip_old and skip_new:
            if abs(i + 1 - j) <= abs(i - j - 1):
                i += 1
            else:
                j += 1
        elif skip_old:
            i += 1
        else:
            j += 1

    return pairs
