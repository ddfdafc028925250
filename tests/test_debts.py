from decimal import Decimal

from core.schema import Debt
from insights.debts import AVALANCHE, NONE, SNOWBALL, rank


def _debt(id, rate, balance):
    return Debt(id=id, name=f"Debt {id}", balance=Decimal(balance), rate=Decimal(rate))


def test_high_rate_recommends_avalanche():
    ranking = rank([_debt("a", "18", "500"), _debt("b", "5", "2000")])
    assert ranking.recommended == AVALANCHE
    assert ranking.avalanche_order[0].rate == Decimal("18")
    assert ranking.snowball_order[0].balance == Decimal("500")
    assert ranking.highest_rate == Decimal("18")


def test_low_rates_recommend_snowball():
    ranking = rank([_debt("a", "12", "3000"), _debt("b", "6", "400")])
    assert ranking.recommended == SNOWBALL
    assert [d.id for d in ranking.snowball_order] == ["b", "a"]
    assert [d.id for d in ranking.avalanche_order] == ["a", "b"]


def test_threshold_is_exclusive_and_configurable():
    debts = [_debt("a", "15", "100")]
    assert rank(debts).recommended == SNOWBALL
    assert rank(debts, rate_threshold=10).recommended == AVALANCHE


def test_ties_keep_input_order():
    ranking = rank([_debt("a", "9", "500"), _debt("b", "9", "500"), _debt("c", "9", "500")])
    assert [d.id for d in ranking.avalanche_order] == ["a", "b", "c"]
    assert [d.id for d in ranking.snowball_order] == ["a", "b", "c"]


def test_empty_list_recommends_nothing():
    ranking = rank([])
    assert ranking.recommended == NONE
    assert ranking.message == "No active debts found."
    assert ranking.to_dataframe().empty


def test_table_has_both_ranks():
    df = rank([_debt("a", "18", "2500"), _debt("b", "5", "300")]).to_dataframe()
    assert df["id"].tolist() == ["a", "b"]
    assert df["avalanche_rank"].tolist() == [1, 2]
    assert df["snowball_rank"].tolist() == [2, 1]
