import pytest

from app.services.cas_import import CASImportService


@pytest.fixture
def cas_data() -> dict:
    return {
        "investor": {"name": "Asha Rao", "pan": "ABCDE1234F"},
        "summary": {
            "total_value": 1500000,
            "accounts": {
                "demat": {"total_value": 600000, "breakdown": {"equities": 450000, "bonds": 150000}},
                "mutual_funds": {"total_value": 900000},
            },
            "asset_allocation": {"equity_percentage": 70, "debt_percentage": 25, "others_percentage": 5},
        },
        "demat_accounts": [{"dp_id": "IN300000"}],
        "mutual_funds": [{"scheme": "Index Fund", "value": 500000}, {"scheme": "Liquid Fund", "value": 400000}],
    }


def test_portfolio_summary(cas_data):
    summary = CASImportService.extract_portfolio_summary(cas_data)

    assert summary.mutualFunds == 900000
    assert summary.directStocks == 450000
    assert summary.bonds == 150000
    assert summary.totalValue == 1500000
    assert summary.assetAllocation == {"equity": 70, "debt": 25, "others": 5}
    assert summary.dematAccounts == 1
    assert summary.mutualFundSchemes == 2


def test_scheme_values_used_when_summary_total_missing(cas_data):
    del cas_data["summary"]["accounts"]["mutual_funds"]
    cas_data["mutual_funds"].append({"scheme": "Debt Fund", "current_value": "1,00,000"})

    assert CASImportService.extract_portfolio_summary(cas_data).mutualFunds == 1000000


@pytest.mark.parametrize("payload", [None, "garbage", [], {"summary": "oops", "mutual_funds": "none"}])
def test_malformed_statements_default_to_zero(payload):
    summary = CASImportService.extract_portfolio_summary(payload)

    assert summary.mutualFunds == 0
    assert summary.totalValue == 0
    assert summary.dematAccounts == 0


def test_seed_facts_sets_equity_holdings(sample_facts, cas_data):
    seeded = CASImportService.seed_facts(sample_facts, cas_data)

    assert seeded.assets.investments.equity.mutualFunds == 900000
    assert seeded.assets.investments.equity.directStocks == 450000
    # everything else untouched
    assert seeded.assets.investments.fixedIncome.ppf == 300000
    assert seeded.annualIncome == 1200000
    assert sample_facts["assets"]["investments"]["equity"]["mutualFunds"] == 800000


def test_seed_facts_keeps_stocks_without_demat_breakdown(sample_facts, cas_data):
    del cas_data["summary"]["accounts"]["demat"]

    seeded = CASImportService.seed_facts(sample_facts, cas_data)

    assert seeded.assets.investments.equity.mutualFunds == 900000
    assert seeded.assets.investments.equity.directStocks == 200000
