"""
Reed-Solomon error correction over GF(256).

Encoding divides the message by the generator polynomial
g(x) = (x - alpha^0)(x - alpha^1)...(x - alpha^(n-1)) and appends the
remainder. Decoding runs the classic pipeline on each block:

    syndromes -> Berlekamp-Massey -> Chien search -> Forney -> verify

Codeword j of an n-codeword block is the coefficient of x^(n-1-j), so the
first transmitted codeword is the highest degree term.

References:
- https://en.wikipedia.org/wiki/Reed-Solomon_error_correction
- https://en.wikiversity.org/wiki/Reed-Solomon_codes_for_coders
- https://en.wikipedia.org/wiki/Berlekamp-Massey_algorithm
- https://en.wikipedia.org/wiki/Forney_algorithm
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import CorrectionFailure
from .galois import (GF256, Polynomial, evaluate_polynomial, formal_derivative,
                     gf, multiply_polynomials)

logger = logging.getLogger(__name__)


#==============================================================================
# REED-SOLOMON ENCODER
#==============================================================================

class ReedSolomonEncoder:
    """Computes error correction codewords for one data block."""

    def __init__(self, gf_instance: GF256 = None):
        self.gf = gf_instance or gf
        self._generator_cache = {}

    def generator_polynomial(self, num_ec_codewords: int) -> Polynomial:
        """
        Build generator polynomial for given number of EC codewords.

        g(x) = (x - alpha^0)(x - alpha^1)...(x - alpha^(n-1))
             = (x + alpha^0)(x + alpha^1)...(x + alpha^(n-1))

        In GF(256), subtraction equals addition.
        """
        if num_ec_codewords in self._generator_cache:
            return self._generator_cache[num_ec_codewords]

        # Start with g(x) = 1
        gen = [1]
        for i in range(num_ec_codewords):
            # coeffs [alpha^i, 1] represents alpha^i + x
            gen = multiply_polynomials(gen, [self.gf.exp(i), 1])

        generator = Polynomial(gen)
        self._generator_cache[num_ec_codewords] = generator
        return generator

    def encode(self, data: List[int], num_ec_codewords: int) -> List[int]:
        """
        Encode data bytes with Reed-Solomon error correction.

        Args:
            data: List of data bytes (integers 0-255)
            num_ec_codewords: Number of error correction codewords to generate

        Returns:
            List of error correction codewords
        """
        if num_ec_codewords <= 0:
            raise ValueError("num_ec_codewords must be positive")
        generator = self.generator_polynomial(num_ec_codewords)
        return self._divide_for_remainder(data, generator, num_ec_codewords)

    def _divide_for_remainder(self, data: List[int], generator: Polynomial,
                              num_ec: int) -> List[int]:
        """
        Compute remainder of message polynomial divided by generator.
        The generator is monic, so each step just cancels the leading term.
        """
        result = list(data) + [0] * num_ec
        gen_coeffs = list(reversed(generator.coeffs))  # High degree first

        for i in range(len(data)):
            coeff = result[i]
            if coeff != 0:
                for j in range(1, len(gen_coeffs)):
                    result[i + j] ^= self.gf.multiply(gen_coeffs[j], coeff)

        return result[len(data):]


rs_encoder = ReedSolomonEncoder()


#==============================================================================
# REED-SOLOMON DECODER
#==============================================================================

@dataclass
class BlockCorrection:
    """Outcome of correcting one data+EC block."""

    codewords: List[int]
    num_data: int
    error_positions: List[int] = field(default_factory=list)
    error_magnitudes: List[int] = field(default_factory=list)
    failure: Optional[CorrectionFailure] = None

    @property
    def is_corrected(self) -> bool:
        return self.failure is None

    @property
    def errors_corrected(self) -> int:
        return len(self.error_positions) if self.failure is None else 0

    @property
    def data_codewords(self) -> List[int]:
        return self.codewords[:self.num_data]


@dataclass
class ErrorCorrectionResult:
    """Aggregate over every block of a symbol."""

    blocks: List[BlockCorrection]
    data_codewords: List[int]
    total_errors: int
    is_recoverable: bool
    confidence: float

    @property
    def first_failure(self) -> Optional[CorrectionFailure]:
        for block in self.blocks:
            if block.failure is not None:
                return block.failure
        return None


class ReedSolomonDecoder:
    """
    Corrects up to floor(ec/2) codeword errors per block.

    Every method is a pure function of its arguments; the decoder itself
    holds nothing but the field reference.
    """

    def __init__(self, gf_instance: GF256 = None):
        self.gf = gf_instance or gf

    def calculate_syndromes(self, codewords: List[int], num_ec: int) -> List[int]:
        """
        S_i = r(alpha^i) for i in [0, num_ec).

        All zero means the block is a valid codeword.
        """
        ascending = list(reversed(codewords))
        return [evaluate_polynomial(ascending, self.gf.exp(i)) for i in range(num_ec)]

    def find_error_locator(self, syndromes: List[int]) -> List[int]:
        """
        Berlekamp-Massey: shortest LFSR that generates the syndromes.

        Returns Lambda(x) in ascending order with Lambda(0) = 1; its degree
        is the number of errors it claims.
        """
        locator = [1]
        previous = [1]
        num_errors = 0
        shift = 1
        last_discrepancy = 1

        for n in range(len(syndromes)):
            discrepancy = syndromes[n]
            for i in range(1, num_errors + 1):
                if i < len(locator):
                    discrepancy ^= self.gf.multiply(locator[i], syndromes[n - i])

            if discrepancy == 0:
                shift += 1
                continue

            scale = self.gf.divide(discrepancy, last_discrepancy)
            correction = [0] * shift + [self.gf.multiply(scale, c) for c in previous]
            updated = locator + [0] * max(0, len(correction) - len(locator))
            for i, c in enumerate(correction):
                updated[i] ^= c

            if 2 * num_errors <= n:
                previous = locator
                num_errors = n + 1 - num_errors
                last_discrepancy = discrepancy
                shift = 1
            else:
                shift += 1
            locator = updated

        locator = locator[:num_errors + 1]
        return locator + [0] * (num_errors + 1 - len(locator))

    def find_error_positions(self, locator: List[int], length: int) -> List[int]:
        """
        Chien search over alpha^(-i) for i in [0, length).

        A root at alpha^(-i) is an error in the x^i coefficient, which is
        array index length - 1 - i.
        """
        positions = []
        for i in range(length):
            if evaluate_polynomial(locator, self.gf.exp(-i)) == 0:
                positions.append(length - 1 - i)
        return positions

    def calculate_error_magnitudes(self, syndromes: List[int], locator: List[int],
                                   positions: List[int],
                                   length: int) -> Optional[List[int]]:
        """
        Forney algorithm for first consecutive root 0:

            e = X * Omega(X^-1) / Lambda'(X^-1),  X = alpha^(length-1-position)

        with Omega(x) = S(x) * Lambda(x) mod x^(2t).
        Returns None when Lambda'(X^-1) vanishes.
        """
        evaluator = multiply_polynomials(syndromes, locator)[:len(syndromes)]
        derivative = formal_derivative(locator)

        magnitudes = []
        for position in positions:
            degree = length - 1 - position
            x = self.gf.exp(degree)
            x_inv = self.gf.exp(-degree)
            denominator = evaluate_polynomial(derivative, x_inv)
            if denominator == 0:
                return None
            numerator = self.gf.multiply(x, evaluate_polynomial(evaluator, x_inv))
            magnitudes.append(self.gf.divide(numerator, denominator))
        return magnitudes

    def correct_block(self, codewords: List[int], num_ec: int) -> BlockCorrection:
        """Run the full correction pipeline on one block (data followed by EC)."""
        length = len(codewords)
        num_data = length - num_ec
        max_correctable = num_ec // 2

        syndromes = self.calculate_syndromes(codewords, num_ec)
        if not any(syndromes):
            return BlockCorrection(list(codewords), num_data)

        locator = self.find_error_locator(syndromes)
        num_errors = len(locator) - 1
        if num_errors > max_correctable:
            return self._fail(codewords, num_data, CorrectionFailure.EXCEEDS_CAPACITY,
                              num_errors, max_correctable)

        positions = self.find_error_positions(locator, length)
        if len(positions) > max_correctable:
            return self._fail(codewords, num_data, CorrectionFailure.EXCEEDS_CAPACITY,
                              len(positions), max_correctable)
        if len(positions) != num_errors:
            # Lambda has roots outside the block: more errors than it can see
            return self._fail(codewords, num_data, CorrectionFailure.LOCATOR_MISMATCH,
                              num_errors, max_correctable)

        magnitudes = self.calculate_error_magnitudes(syndromes, locator, positions, length)
        if magnitudes is None:
            return self._fail(codewords, num_data, CorrectionFailure.DERIVATIVE_ZERO,
                              num_errors, max_correctable)

        corrected = list(codewords)
        for position, magnitude in zip(positions, magnitudes):
            corrected[position] ^= magnitude

        if any(self.calculate_syndromes(corrected, num_ec)):
            return self._fail(codewords, num_data, CorrectionFailure.VERIFICATION_FAILED,
                              num_errors, max_correctable)

        logger.debug("Corrected %d codeword(s) at %s", num_errors, sorted(positions))
        return BlockCorrection(corrected, num_data, positions, magnitudes)

    def _fail(self, codewords: List[int], num_data: int, reason: str,
              detected: int, max_correctable: int) -> BlockCorrection:
        failure = CorrectionFailure(reason, detected, max_correctable)
        logger.debug("Block uncorrectable: %s", failure)
        # The received codewords are kept for best-effort data extraction
        return BlockCorrection(list(codewords), num_data, failure=failure)

    def correct_blocks(self, blocks: List[List[int]], num_ec: int) -> ErrorCorrectionResult:
        """
        Correct each block independently and join the data codewords.

        Blocks share no state, so the order of processing does not matter.
        """
        results = [self.correct_block(block, num_ec) for block in blocks]

        data_codewords = []
        for result in results:
            data_codewords.extend(result.data_codewords)

        verified = sum(1 for r in results if r.is_corrected)
        return ErrorCorrectionResult(
            blocks=results,
            data_codewords=data_codewords,
            total_errors=sum(r.errors_corrected for r in results),
            is_recoverable=verified == len(results),
            confidence=verified / len(results) if results else 0.0,
        )


rs_decoder = ReedSolomonDecoder()
