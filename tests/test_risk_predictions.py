from app.schemas.emergency import RiskLevel
from app.services.emergency_service import generate_risk_predictions


def _reports(*pairs):
    return [{"specific_type": specific_type, "location": location} for specific_type, location in pairs]


def test_no_repeats_no_predictions():
    assert generate_risk_predictions([]) == []
    assert generate_risk_predictions(_reports(("Fire", "A"), ("Theft", "B"))) == []


def test_type_prediction_tiers_and_confidence():
    [low] = generate_risk_predictions(_reports(("Theft", "A"), ("Theft", "B")))
    assert (low.type, low.risk, low.confidence) == ("Theft", RiskLevel.LOW, 40)
    assert low.factors == ["Pattern Detected"]
    assert (low.location, low.time) == ("Multiple Locations", "Next 24 hours")

    [medium] = generate_risk_predictions(_reports(("Theft", "A"), ("Theft", "B"), ("Theft", "C")))
    assert (medium.risk, medium.confidence) == (RiskLevel.MEDIUM, 60)
    assert medium.factors == ["Recent Incidents", "Pattern Detected"]

    [high] = generate_risk_predictions(_reports(*[("Theft", str(i)) for i in range(6)]))
    assert (high.risk, high.confidence) == (RiskLevel.HIGH, 95)
    assert high.factors == ["High Frequency", "Recent Incidents", "Pattern Detected"]


def test_location_predictions():
    predictions = generate_risk_predictions(_reports(("Fire", "Howrah"), ("Theft", "Howrah"), ("Flood", "Howrah")))

    [area] = predictions
    assert area.type == "General Emergency"
    assert (area.location, area.risk, area.confidence) == ("Howrah", RiskLevel.HIGH, 75)
    assert area.factors == ["High Activity Area", "Recent Incidents"]
    assert area.time == "Next 12 hours"

    [pair] = generate_risk_predictions(_reports(("Fire", "Salt Lake"), ("Theft", "Salt Lake")))
    assert (pair.risk, pair.confidence) == (RiskLevel.MEDIUM, 50)

    [busy] = generate_risk_predictions(_reports(*[(str(i), "Esplanade") for i in range(5)]))
    assert busy.confidence == 90


def test_type_predictions_come_first_and_output_is_capped():
    reports = _reports(
        ("Fire", "L1"), ("Fire", "L1"),
        ("Theft", "L2"), ("Theft", "L2"),
        ("Flood", "L3"), ("Flood", "L3"),
        ("Assault", "L4"), ("Assault", "L4"),
    )

    predictions = generate_risk_predictions(reports)

    assert len(predictions) == 5
    assert [p.type for p in predictions] == ["Fire", "Theft", "Flood", "Assault", "General Emergency"]
    assert predictions[-1].location == "L1"
