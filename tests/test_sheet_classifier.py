"""Tests for sheet name classification."""

import pytest

from kakeibo.services.sheet_classifier import (
    DailyLedger,
    FixedCostAlternative,
    FixedCostStandard,
    Unrecognized,
    classify,
    is_fixed_cost,
)


class TestClassify:
    def test_daily_ledger(self):
        assert classify("2024年5月") == DailyLedger(2024, 5)
        assert classify("2024年12月") == DailyLedger(2024, 12)
        assert classify("2024年05月") == DailyLedger(2024, 5)

    def test_fixed_cost_standard(self):
        assert classify("2024年公共料金等") == FixedCostStandard(2024)

    def test_fixed_cost_alternative(self):
        assert classify("2024合計") == FixedCostAlternative(2024)

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "Sheet1",
            "表紙",
            "2024年5月 ",
            " 2024年5月",
            "2024年5月(コピー)",
            "24年5月",
            "2024年123月",
            "2024年13月",
            "2024年0月",
            "2024年5月\n",
            "２０２４年５月",
            "2024年公共料金",
            "2024年合計",
            "合計",
        ],
    )
    def test_everything_else_is_unrecognized(self, name):
        assert isinstance(classify(name), Unrecognized)

    def test_is_fixed_cost(self):
        assert is_fixed_cost(classify("2024合計"))
        assert is_fixed_cost(classify("2024年公共料金等"))
        assert not is_fixed_cost(classify("2024年5月"))
        assert not is_fixed_cost(classify("memo"))
