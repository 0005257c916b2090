"""
Galois Field GF(256) arithmetic and polynomial operations.

Every Reed-Solomon computation in the codec runs on top of this module:
generator construction and long division on the encode side, syndromes,
Berlekamp-Massey, Chien search and Forney on the decode side.

References:
- https://en.wikipedia.org/wiki/Finite_field_arithmetic
- https://research.swtch.com/field
"""

from typing import List


#==============================================================================
# GALOIS FIELD GF(256) ARITHMETIC
#==============================================================================

class GF256:
    """
    Galois Field GF(2^8) arithmetic for QR codes.

    Uses the primitive polynomial: x^8 + x^4 + x^3 + x^2 + 1 (0x11d = 285)
    with generator alpha = 2.
    """

    PRIMITIVE_POLY = 0x11d  # x^8 + x^4 + x^3 + x^2 + 1 = 285

    def __init__(self):
        """Initialize the field with precomputed exp and log tables."""
        self.exp_table = [0] * 512  # Extended so log(a) + log(b) never wraps
        self.log_table = [0] * 256
        self._build_tables()

    def _build_tables(self):
        """Build exponential and logarithm lookup tables using alpha = 2."""
        x = 1
        for i in range(255):
            self.exp_table[i] = x
            self.exp_table[i + 255] = x
            self.log_table[x] = i

            # Multiply by alpha (2) with reduction
            x <<= 1
            if x & 0x100:
                x ^= self.PRIMITIVE_POLY
        self.exp_table[510] = self.exp_table[0]
        self.exp_table[511] = self.exp_table[1]

        self.log_table[0] = -1  # log(0) is undefined

    def add(self, a: int, b: int) -> int:
        """Addition in GF(256) is XOR."""
        return a ^ b

    def exp(self, i: int) -> int:
        """Return alpha^i, with i taken mod 255 (negative exponents allowed)."""
        return self.exp_table[i % 255]

    def log(self, x: int) -> int:
        """Return the discrete logarithm of a non-zero element."""
        if x == 0:
            raise ValueError("log(0) is undefined in GF(256)")
        return self.log_table[x]

    def multiply(self, a: int, b: int) -> int:
        """Multiply two GF(256) elements using log tables."""
        if a == 0 or b == 0:
            return 0
        return self.exp_table[self.log_table[a] + self.log_table[b]]

    def divide(self, a: int, b: int) -> int:
        """Divide a by b in GF(256)."""
        if b == 0:
            raise ZeroDivisionError("Division by zero in GF(256)")
        if a == 0:
            return 0
        return self.exp_table[(self.log_table[a] - self.log_table[b]) % 255]

    def power(self, a: int, n: int) -> int:
        """Raise a to the power n in GF(256)."""
        if a == 0:
            return 0 if n > 0 else 1
        return self.exp_table[(self.log_table[a] * n) % 255]

    def inverse(self, a: int) -> int:
        """Find multiplicative inverse of a in GF(256)."""
        if a == 0:
            raise ZeroDivisionError("No inverse for 0")
        # a^(-1) = a^254 since a^255 = 1
        return self.exp_table[255 - self.log_table[a]]


# Process-wide field instance; the tables are read-only after import.
gf = GF256()


#==============================================================================
# POLYNOMIAL OPERATIONS OVER GF(256)
#==============================================================================

def evaluate_polynomial(coeffs: List[int], x: int) -> int:
    """
    Evaluate a polynomial at x using Horner's method.

    Coefficients are in ascending order of degree: coeffs[i] belongs to x^i.
    """
    result = 0
    for coeff in reversed(coeffs):
        result = gf.multiply(result, x) ^ coeff
    return result


def multiply_polynomials(a: List[int], b: List[int]) -> List[int]:
    """Convolve two coefficient lists; the result has len(a) + len(b) - 1 terms."""
    result = [0] * (len(a) + len(b) - 1)
    for i, ca in enumerate(a):
        if ca == 0:
            continue
        for j, cb in enumerate(b):
            result[i + j] ^= gf.multiply(ca, cb)
    return result


def formal_derivative(coeffs: List[int]) -> List[int]:
    """
    Formal derivative in characteristic 2.

    d/dx(c * x^k) = k * c * x^(k-1), and k * c vanishes for even k.
    """
    derivative = [coeffs[k] if k % 2 == 1 else 0 for k in range(1, len(coeffs))]
    return derivative or [0]


class Polynomial:
    """
    Polynomial with coefficients in GF(256).

    Coefficients are stored in ascending order of degree:
    coeffs[i] is the coefficient of x^i.
    """

    def __init__(self, coefficients: List[int]):
        # Trim zeros from the highest degree end
        self.coeffs = list(coefficients) or [0]
        while len(self.coeffs) > 1 and self.coeffs[-1] == 0:
            self.coeffs.pop()

    @property
    def degree(self) -> int:
        return len(self.coeffs) - 1

    def __repr__(self) -> str:
        terms = []
        for i, c in enumerate(self.coeffs):
            if c != 0:
                if i == 0:
                    terms.append(f"{c}")
                elif i == 1:
                    terms.append(f"{c}x")
                else:
                    terms.append(f"{c}x^{i}")
        return " + ".join(terms) if terms else "0"

    def __eq__(self, other) -> bool:
        return isinstance(other, Polynomial) and self.coeffs == other.coeffs

    def evaluate(self, x: int) -> int:
        return evaluate_polynomial(self.coeffs, x)

    def add(self, other: 'Polynomial') -> 'Polynomial':
        max_len = max(len(self.coeffs), len(other.coeffs))
        a = self.coeffs + [0] * (max_len - len(self.coeffs))
        b = other.coeffs + [0] * (max_len - len(other.coeffs))
        return Polynomial([a[i] ^ b[i] for i in range(max_len)])

    def multiply(self, other: 'Polynomial') -> 'Polynomial':
        return Polynomial(multiply_polynomials(self.coeffs, other.coeffs))

    def derivative(self) -> 'Polynomial':
        return Polynomial(formal_derivative(self.coeffs))
