"""
Margin-of-error formulas for derived ACS estimates.

These follow the approximations published in the Census Bureau's ACS
handbook "Understanding and Using American Community Survey Data",
chapter 8. Every function accepts scalars or array-likes and broadcasts
with numpy.
"""
import logging
import numpy as np
from scipy import stats

logger = logging.getLogger(__name__)

# z-score of the 90% confidence level the ACS publishes its MOEs at
Z_90 = 1.645

Z_SCORES = {
    90: 1.645,
    95: 1.96,
    99: 2.576,
}


def _unwrap(result):
    return result if np.ndim(result) else float(result)


def rescale_moe(moe, level: int = 90):
    """Convert published 90% MOEs to another confidence level."""
    if level not in Z_SCORES:
        raise ValueError(f"moe_level must be one of {sorted(Z_SCORES)}, got {level}")
    return np.asarray(moe, dtype=float) * (Z_SCORES[level] / Z_90)


def moe_sum(moe, estimate=None, na_rm: bool = False) -> float:
    """
    MOE of a sum of estimates.

    When the estimates are supplied and more than one of them is zero, only
    the largest MOE among the zero estimates is counted, as the handbook
    recommends.
    """
    moe = np.asarray(moe, dtype=float)
    if estimate is not None:
        estimate = np.asarray(estimate, dtype=float)
        if estimate.shape != moe.shape:
            raise ValueError("moe and estimate must have the same length")
        zero = estimate == 0
        if zero.sum() > 1:
            kept_zero = np.nanmax(moe[zero])
            moe = np.concatenate([moe[~zero], [kept_zero]])

    if na_rm:
        moe = moe[~np.isnan(moe)]
    elif np.isnan(moe).any():
        return np.nan

    return float(np.sqrt(np.sum(moe ** 2)))


def moe_ratio(num, denom, moe_num, moe_denom):
    """MOE of a ratio where the numerator is not a subset of the denominator."""
    num, denom = np.asarray(num, dtype=float), np.asarray(denom, dtype=float)
    moe_num, moe_denom = np.asarray(moe_num, dtype=float), np.asarray(moe_denom, dtype=float)
    ratio = num / denom
    return _unwrap(np.sqrt(moe_num ** 2 + ratio ** 2 * moe_denom ** 2) / denom)


def moe_prop(num, denom, moe_num, moe_denom):
    """
    MOE of a proportion where the numerator is a subset of the denominator.

    When the value under the square root is negative the ratio formula is
    used instead.
    """
    num, denom = np.asarray(num, dtype=float), np.asarray(denom, dtype=float)
    moe_num, moe_denom = np.asarray(moe_num, dtype=float), np.asarray(moe_denom, dtype=float)
    prop = num / denom
    radicand = moe_num ** 2 - prop ** 2 * moe_denom ** 2
    with np.errstate(invalid="ignore"):
        result = np.where(
            radicand < 0,
            np.sqrt(moe_num ** 2 + prop ** 2 * moe_denom ** 2) / denom,
            np.sqrt(np.abs(radicand)) / denom,
        )
    if np.any(radicand < 0):
        logger.debug("Negative radicand in moe_prop; used the ratio formula for those rows")
    return _unwrap(result)


def moe_product(est1, est2, moe1, moe2):
    """MOE of the product of two estimates."""
    est1, est2 = np.asarray(est1, dtype=float), np.asarray(est2, dtype=float)
    moe1, moe2 = np.asarray(moe1, dtype=float), np.asarray(moe2, dtype=float)
    return _unwrap(np.sqrt(est1 ** 2 * moe2 ** 2 + est2 ** 2 * moe1 ** 2))


def significance(est1, est2, moe1, moe2, clevel: float = 0.90):
    """
    Test whether two estimates differ significantly.

    Args:
        est1, est2: Estimates to compare
        moe1, moe2: Their published (90%) margins of error
        clevel: Confidence level of the test

    Returns:
        True where the difference is statistically significant
    """
    est1, est2 = np.asarray(est1, dtype=float), np.asarray(est2, dtype=float)
    se1 = np.asarray(moe1, dtype=float) / Z_90
    se2 = np.asarray(moe2, dtype=float) / Z_90
    z_critical = stats.norm.ppf(1 - (1 - clevel) / 2)
    test_stat = np.abs((est1 - est2) / np.sqrt(se1 ** 2 + se2 ** 2))
    result = test_stat > z_critical
    return result if result.ndim else bool(result)
