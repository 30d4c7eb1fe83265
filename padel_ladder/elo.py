import math
from decimal import Decimal, ROUND_HALF_UP

K = 32  # Elo K-factor, fixed for every match


def round_half_up(value):
    """Round to the nearest integer, halves away from zero.

    Python's round() sends halves to the nearest even number (16.5 -> 16),
    which would disagree with the JavaScript Math.round() the ladder was first
    scored with for every non-negative delta.
    """
    # Decimal(value) is the exact binary value, so 0.49999999999999994 stays below the half
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def expected_score(rating, opponent_rating):
    return 1 / (1 + math.pow(10, (opponent_rating - rating) / 400))


def compute_delta(winning_average, losing_average):
    """Rating points gained by each winner (and lost by each loser).

    Always an integer in [0, K]: 16 for evenly matched teams, shrinking towards
    0 as the winners were more heavily favoured.
    """
    if not (math.isfinite(winning_average) and math.isfinite(losing_average)):
        raise ValueError("Team averages must be finite numbers")

    return round_half_up(K * (1 - expected_score(winning_average, losing_average)))


def team_average(ratings):
    ratings = list(ratings)
    return sum(ratings) / len(ratings)
