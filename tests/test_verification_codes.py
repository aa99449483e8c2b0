"""
Unit tests for verification code generation.
"""

from app.core import verification
from app.core.verification import generate_verification_code


class TestCodeGeneration:
    """Codes are 6 digits drawn from 100000-999999"""

    def test_code_is_six_digits(self):
        for _ in range(1000):
            code = generate_verification_code()
            assert len(code) == 6
            assert code.isdigit()
            assert 100000 <= int(code) <= 999999

    def test_code_never_has_leading_zero(self):
        codes = {generate_verification_code() for _ in range(1000)}
        assert not any(code.startswith("0") for code in codes)

    def test_lowest_random_value_gives_100000(self, monkeypatch):
        monkeypatch.setattr(verification._random, "random", lambda: 0.0)
        assert generate_verification_code() == "100000"

    def test_highest_random_value_gives_999999(self, monkeypatch):
        monkeypatch.setattr(verification._random, "random", lambda: 0.9999999999)
        assert generate_verification_code() == "999999"

    def test_codes_vary(self):
        codes = {generate_verification_code() for _ in range(50)}
        assert len(codes) > 1
