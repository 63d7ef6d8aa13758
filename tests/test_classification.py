from donation_ledger.services.classification import classify, estimate_credit_value


def test_clothing_keywords():
    result = classify("Red cotton T-Shirt")
    assert result.category == "clothing"
    assert result.confidence == 0.9
    assert "Include size information" in result.suggestions


def test_other_items():
    result = classify("Kitchen utensils", "set of spoons")
    assert result.category == "other"
    assert result.confidence == 0.7


def test_estimate_credit_value():
    assert estimate_credit_value("clothing") == 12
    assert estimate_credit_value("other", "excellent") == 15
    assert estimate_credit_value("other", "fair") == 7
