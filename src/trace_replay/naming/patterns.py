"""Keyword pattern table and identifier helpers used for naming."""

import re
from typing import Iterable, List, Optional, Tuple

# Declaration order is the tie-break order
NAME_PATTERNS = [
    ("vault", ["deposit", "withdraw", "totalAssets", "totalSupply"]),
    ("pool", ["swap", "mint", "burn", "getReserves"]),
    ("router", ["swapExactTokensForTokens", "addLiquidity", "removeLiquidity"]),
    ("factory", ["createPair", "getPair", "allPairs"]),
    ("token", ["transfer", "approve", "balanceOf", "totalSupply"]),
    ("lending", ["borrow", "repay", "liquidate", "collateral"]),
    ("governance", ["propose", "vote", "execute", "delegate"]),
    ("nft", ["mint", "tokenURI", "ownerOf", "setApprovalForAll"]),
]

MIN_PATTERN_SCORE = 2


def sanitize_identifier(name: str, fallback: str = "contract") -> str:
    """
    Make `name` a valid identifier.

    Non-alphanumeric characters become "_", runs of "_" collapse, and a
    leading digit gets a "_" prefix.
    """
    name = re.sub(r'[^A-Za-z0-9_]', '_', name or '')
    name = re.sub(r'_+', '_', name)
    if not name or name == '_':
        name = fallback
    if name[0].isdigit():
        name = '_' + name
    return name


def function_names(signatures: Iterable[str]) -> List[str]:
    names = []
    for signature in signatures:
        name = signature.split('(')[0].strip()
        if name and name not in names:
            names.append(name)
    return names


def score_patterns(names: Iterable[str]) -> List[Tuple[str, int]]:
    """Keyword-overlap score per category, in table order."""
    lowered = [n.lower() for n in names]
    scores = []
    for category, keywords in NAME_PATTERNS:
        score = sum(1 for keyword in keywords if any(keyword.lower() in n for n in lowered))
        scores.append((category, score))
    return scores


def best_pattern(signatures: Iterable[str]) -> Optional[str]:
    """
    Highest-scoring category for a signature set.

    Ties go to the first-declared category. Returns None below the
    minimum score.
    """
    best_category, best_score = None, 0
    for category, score in score_patterns(function_names(signatures)):
        if score > best_score:
            best_category, best_score = category, score
    if best_score >= MIN_PATTERN_SCORE:
        return best_category
    return None
