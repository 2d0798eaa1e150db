"""Tests for MAC address parsing."""

import pytest

from mezame.core.mac import InvalidMacAddress, format_mac, normalize_mac, parse_mac

EXPECTED = bytes([0xAA, 0xBB, 0xCC, 0xDD, 0xEE, 0xFF])


class TestParseMac:
    @pytest.mark.parametrize(
        "text",
        [
            "AA:BB:CC:DD:EE:FF",
            "aa:bb:cc:dd:ee:ff",
            "AA-BB-CC-DD-EE-FF",
            "aa-Bb-cC-dd-EE-ff",
            "  AA:BB:CC:DD:EE:FF\n",
        ],
    )
    def test_valid_forms_yield_same_bytes(self, text: str) -> None:
        assert parse_mac(text) == EXPECTED

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "AA:BB:CC:DD:EE",
            "AA:BB:CC:DD:EE:FF:00",
            "AABBCCDDEEFF",
            "AA:BB:CC:DD:EE:F",
            "AAA:BB:CC:DD:EE:FF",
            "AA:BB:CC:DD:EE:GG",
            "AA:BB-CC:DD:EE:FF",
            "AA.BB.CC.DD.EE.FF",
            "AA::BB:CC:DD:EE:FF",
        ],
    )
    def test_malformed_raises(self, text: str) -> None:
        with pytest.raises(InvalidMacAddress) as exc_info:
            parse_mac(text)
        assert exc_info.value.mac == text

    def test_non_string_raises(self) -> None:
        with pytest.raises(InvalidMacAddress):
            parse_mac(None)  # type: ignore[arg-type]

    def test_invalid_mac_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_mac("nope")


class TestNormalizeMac:
    def test_uppercases_and_uses_colons(self) -> None:
        assert normalize_mac("aa-bb-cc-dd-ee-ff") == "AA:BB:CC:DD:EE:FF"

    def test_format_mac_pads_bytes(self) -> None:
        assert format_mac(bytes([0, 1, 2, 3, 4, 0x0A])) == "00:01:02:03:04:0A"
