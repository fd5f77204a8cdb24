def make_holding(**overrides):
    holding = {
        "name": "Bangkok Bank",
        "ticker": "BBL",
        "asset_type": "stock",
        "investment_type": "core",
        "shares": 100,
        "avg_cost": 120.0,
        "avg_cost_currency": "THB",
        "current_price": 135.0,
        "current_price_currency": "THB",
    }
    holding.update(overrides)
    return holding
