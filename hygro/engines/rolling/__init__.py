"""Rolling-window engines."""

from hygro.engines.rolling.moving_average import (
    calculate_sma,
    calculate_ema,
    rolling_mean,
    exponential_mean,
    window_bounds,
)

__all__ = ['calculate_sma', 'calculate_ema', 'rolling_mean', 'exponential_mean', 'window_bounds']
