"""Delay between two signals found from the peak of their circular cross-correlation."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def cross_correlation_delay(first: Sequence[float], second: Sequence[float]) -> int:
    """Return the lag, in samples, at which ``first`` best matches ``second``.

    The shorter signal is padded with zeros to the length of the longer one.
    The correlation is circular; lags past half the length are reported as
    negative.  A positive result means ``first`` lags behind ``second``.
    """
    a = np.asarray(first, dtype=np.float64).ravel()
    b = np.asarray(second, dtype=np.float64).ravel()
    n = max(a.size, b.size)
    if n == 0:
        raise ValueError("cannot correlate empty signals")
    spectrum = np.fft.rfft(a, n) * np.conj(np.fft.rfft(b, n))
    correlation = np.fft.irfft(spectrum, n)
    peak = int(np.argmax(correlation))
    return peak - n if peak > n // 2 else peak


def delay_report(delta: int, sample_rate: int) -> str:
    """Format a delay in samples together with its length in milliseconds."""
    if sample_rate <= 0:
        raise ValueError("sample rate must be positive")
    scaled = delta * 1000
    millis = abs(scaled) // sample_rate
    if scaled < 0:
        millis = -millis
    return (
        f"delta: {delta} samples\n"
        f"sample rate: {sample_rate} Hz\n"
        f"delta time: {millis} ms"
    )