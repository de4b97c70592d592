"""
Spectral transform context - reusable real/complex FFT buffers.

A SpectralTransform owns a real buffer of `size` samples and a complex
buffer of `size // 2 + 1` bins. forward() fills the complex buffer from the
real one and inverse() does the reverse. Neither direction is normalized,
so a forward/inverse round trip scales by `size`; callers fold the scaling
into their inputs.

A context holds scratch state and is not reentrant: use one per thread.
It is a scoped resource and should be acquired with a `with` block so its
buffers are released on every exit path.

Example:
    >>> with SpectralTransform(8) as fft:
    ...     fft.real_buffer[0] = 1.0
    ...     _ = fft.forward()
    ...     _ = fft.inverse()
    ...     float(fft.real_buffer[0])
    8.0
"""

import logging

import numpy as np
from scipy.fft import rfft, irfft

logger = logging.getLogger(__name__)


class SpectralTransform:
    """
    Forward/inverse real FFT with persistent buffers.

    Attributes:
        size: Transform length in samples
        real_buffer: Time-domain samples, length size
        complex_buffer: Spectrum bins, length size // 2 + 1
    """

    def __init__(self, size: int):
        if size <= 0:
            raise ValueError(f"Transform size must be positive, got {size}")
        self.size = int(size)
        self.real_buffer = np.zeros(self.size, dtype=np.float64)
        self.complex_buffer = np.zeros(self.size // 2 + 1, dtype=np.complex128)
        self._closed = False
        logger.debug(f"Allocated spectral transform of size {self.size}")

    def __enter__(self) -> "SpectralTransform":
        self._check_open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise RuntimeError("SpectralTransform has been closed")

    @property
    def complex_size(self) -> int:
        return self.size // 2 + 1

    @property
    def closed(self) -> bool:
        return self._closed

    def clear_real(self) -> None:
        self._check_open()
        self.real_buffer.fill(0.0)

    def forward(self) -> np.ndarray:
        """Real buffer -> complex buffer. Returns the complex buffer."""
        self._check_open()
        self.complex_buffer[:] = rfft(self.real_buffer)
        return self.complex_buffer

    def inverse(self) -> np.ndarray:
        """Complex buffer -> real buffer, without 1/size scaling. Returns the real buffer."""
        self._check_open()
        self.real_buffer[:] = irfft(self.complex_buffer, n=self.size, norm="forward")
        return self.real_buffer

    def close(self) -> None:
        """Release the buffers. Further use raises RuntimeError."""
        if self._closed:
            return
        self.real_buffer = np.zeros(0, dtype=np.float64)
        self.complex_buffer = np.zeros(0, dtype=np.complex128)
        self._closed = True
