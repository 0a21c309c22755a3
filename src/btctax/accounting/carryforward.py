"""Capital loss carryforward.

Net capital losses offset at most ``limit`` of ordinary income per year
($3,000, or $1,500 married filing separately). The excess carries forward.
See IRS Publication 550 and the Schedule D instructions.
"""

from decimal import Decimal

from btctax.domain.models.tax import CarryforwardResult

DEFAULT_LOSS_LIMIT = Decimal("3000")


def compute_carryforward(
    short_term_gl: Decimal,
    long_term_gl: Decimal,
    prior_carryforward: Decimal = Decimal(0),
    limit: Decimal = DEFAULT_LOSS_LIMIT,
) -> CarryforwardResult:
    """Deductible loss for the year and the remainder carried forward.

    Args:
        short_term_gl: Net short-term gain/loss (negative = loss).
        long_term_gl: Net long-term gain/loss.
        prior_carryforward: Loss carried in from the prior year, <= 0.
        limit: Annual deduction limit, positive.
    """
    total = short_term_gl + long_term_gl + prior_carryforward

    if total >= 0:
        return CarryforwardResult(
            net_gain_loss=total,
            deductible_loss=Decimal(0),
            carryforward_amount=Decimal(0),
            short_term_gain_loss=short_term_gl,
            long_term_gain_loss=long_term_gl,
        )

    deductible = max(total, -limit)
    return CarryforwardResult(
        net_gain_loss=total,
        deductible_loss=deductible,
        carryforward_amount=total - deductible,
        short_term_gain_loss=short_term_gl,
        long_term_gain_loss=long_term_gl,
    )
