"""Score and star arithmetic. Lower scores are better.

Phase 1 measures how many words the pool had to offer before the quote
was collected; phase 2 charges for reordering moves and hints.
"""

from decimal import Decimal, ROUND_HALF_UP

MOVE_COST = 0.25
HINT_COST = 0.5
BONUS_DISCOUNT = 0.9
PHASE1_STAR_TIERS = ((1.5, 5), (2.5, 4), (3.5, 3), (4.5, 2))
PHASE2_TIER_GROWTH = 1.5


def round2(value: float) -> float:
    """Round half-up to 2 decimals, the way the scoreboard displays values."""
    return float(Decimal(str(value)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP))


def phase1_score(total_words_emitted: int, unique_word_count: int, speed: float = 1.0) -> float:
    if unique_word_count <= 0:
        return 0.0
    if speed is None or speed <= 0:
        speed = 1.0
    return round2(total_words_emitted / unique_word_count / speed)


def phase2_score(moves: int, hints: int) -> float:
    return moves * MOVE_COST + hints * HINT_COST


def final_score(phase1: float, phase2: float, bonus_correct: bool) -> float:
    total = phase1 + phase2
    if bonus_correct:
        return round2(total * BONUS_DISCOUNT)
    return total


def stars_for_phase1(score: float) -> int:
    for ceiling, stars in PHASE1_STAR_TIERS:
        if score <= ceiling:
            return stars
    return 1


def stars_for_phase2(score: float, word_count: int) -> int:
    # 5 stars allows roughly one move per word; each lower tier allows 50% more
    threshold = word_count * MOVE_COST
    for stars in (5, 4, 3, 2):
        if score <= threshold:
            return stars
        threshold *= PHASE2_TIER_GROWTH
    return 1


def final_stars(phase1: float, phase2: float, word_count: int) -> int:
    average = Decimal(stars_for_phase1(phase1) + stars_for_phase2(phase2, word_count)) / 2
    stars = int(average.quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    return max(1, min(5, stars))
