"""Unit tests for ChallengeGenerator."""

from __future__ import annotations

import secrets
from unittest.mock import patch

import pytest

from otpgate.exceptions import ConfigError, GenerationError
from otpgate.otp.generator import ChallengeGenerator


@pytest.mark.unit
class TestChallengeGenerator:
    def test_default_code_is_six_digits(self) -> None:
        code = ChallengeGenerator().generate()
        assert len(code) == 6
        assert code.isdigit()

    def test_codes_stay_in_range(self) -> None:
        gen = ChallengeGenerator(length=6)
        for _ in range(500):
            value = int(gen.generate())
            assert 100_000 <= value <= 999_999

    def test_custom_length(self) -> None:
        gen = ChallengeGenerator(length=8)
        assert gen.length == 8
        assert len(gen.generate()) == 8

    def test_single_digit_codes(self) -> None:
        gen = ChallengeGenerator(length=1)
        codes = {gen.generate() for _ in range(200)}
        assert codes <= set("0123456789")

    def test_uses_secrets_module(self) -> None:
        with patch.object(secrets, "randbelow", return_value=42) as mock_randbelow:
            code = ChallengeGenerator().generate()
        mock_randbelow.assert_called_once_with(900_000)
        assert code == "100042"

    def test_entropy_failure_raises_generation_error(self) -> None:
        with (
            patch.object(secrets, "randbelow", side_effect=OSError("no entropy")),
            pytest.raises(GenerationError),
        ):
            ChallengeGenerator().generate()

    def test_zero_length_rejected(self) -> None:
        with pytest.raises(ConfigError):
            ChallengeGenerator(length=0)
