from uuid import uuid4

import pytest


async def _other_user_headers(client) -> dict:
    response = await client.post(
        "/api/auth/signup", json={"email": "someone.else@example.com", "password": "s3cret!"}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.cookies.get('access_token')}"}


async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_requests_without_a_token_are_rejected(client):
    for path in ("/api/scenarios", "/api/entries", "/api/projections", "/api/profile"):
        response = await client.get(path)
        assert response.status_code == 401


async def test_bad_token_is_forbidden(client):
    response = await client.get("/api/scenarios", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 403


async def test_signup_login_and_me(client):
    signup = await client.post(
        "/api/auth/signup", json={"email": "new@example.com", "password": "pa55word", "firstName": "Sam"}
    )
    assert signup.status_code == 200
    assert "password" not in signup.json()["user"]

    duplicate = await client.post("/api/auth/signup", json={"email": "new@example.com", "password": "x"})
    assert duplicate.status_code == 400

    wrong = await client.post("/api/auth/login", json={"email": "new@example.com", "password": "nope"})
    assert wrong.status_code == 401

    login = await client.post("/api/auth/login", json={"email": "new@example.com", "password": "pa55word"})
    assert login.status_code == 200
    token = login.cookies.get("access_token")

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "new@example.com"
    assert me.json()["user"]["firstName"] == "Sam"


async def test_signup_creates_default_scenario(auth_client):
    response = await auth_client.get("/api/scenarios")

    assert response.status_code == 200
    scenarios = response.json()
    assert len(scenarios) == 1
    assert scenarios[0]["name"] == "My Scenario"
    assert scenarios[0]["color"] == "#10b981"
    assert scenarios[0]["isSelected"] is True


async def test_entries_lifecycle(auth_client):
    for amount, stamp in ((100_000, "2025-01-01T00:00:00Z"), (150_000, "2025-06-01T00:00:00Z")):
        response = await auth_client.post("/api/entries", json={"amount": amount, "timestamp": stamp})
        assert response.status_code == 200

    listed = (await auth_client.get("/api/entries")).json()
    assert [e["amount"] for e in listed] == [150_000, 100_000]
    assert listed[0]["timestamp"].startswith("2025-06-01T00:00:00")

    entry_id = listed[0]["id"]
    assert (await auth_client.delete(f"/api/entries/{entry_id}")).status_code == 204
    assert (await auth_client.delete(f"/api/entries/{entry_id}")).status_code == 404
    assert len((await auth_client.get("/api/entries")).json()) == 1


async def test_entry_requires_amount(auth_client):
    response = await auth_client.post("/api/entries", json={"note": "forgot the number"})

    assert response.status_code == 422


async def test_entries_of_other_users_are_off_limits(auth_client):
    mine = (await auth_client.post("/api/entries", json={"amount": 5_000})).json()
    other = await _other_user_headers(auth_client)

    response = await auth_client.delete(f"/api/entries/{mine['id']}", headers=other)
    assert response.status_code == 403
    assert (await auth_client.get("/api/entries", headers=other)).json() == []


async def test_scenario_crud(auth_client):
    created = await auth_client.post("/api/scenarios", json={"name": "Lean", "currentRate": "abc", "swr": 3.5})
    assert created.status_code == 200
    lean = created.json()
    assert lean["currentRate"] == 7
    assert lean["swr"] == 3.5
    assert lean["color"] == "#f59e0b"
    assert lean["order"] == 1

    patched = await auth_client.patch(f"/api/scenarios/{lean['id']}", json={"name": "Leaner", "inflationRate": 2.5})
    assert patched.json()["name"] == "Leaner"
    assert patched.json()["inflationRate"] == 2.5
    assert patched.json()["swr"] == 3.5

    copy = (await auth_client.post(f"/api/scenarios/{lean['id']}/duplicate")).json()
    assert copy["name"] == "Leaner (Copy)"

    assert (await auth_client.delete(f"/api/scenarios/{copy['id']}")).status_code == 204
    assert (await auth_client.get(f"/api/scenarios/{copy['id']}")).status_code == 404
    assert len((await auth_client.get("/api/scenarios")).json()) == 2


async def test_last_scenario_cannot_be_deleted(auth_client):
    only = (await auth_client.get("/api/scenarios")).json()[0]

    response = await auth_client.delete(f"/api/scenarios/{only['id']}")

    assert response.status_code == 400
    assert response.json()["detail"] == "At least one scenario must remain"


async def test_income_scenario_derives_contribution(auth_client):
    created = await auth_client.post(
        "/api/scenarios",
        json={"name": "Salary", "grossIncome": 100_000, "baseMonthlyBudget": 3_000, "spendingGrowthRate": 0},
    )
    scenario = created.json()

    assert scenario["yearlyContribution"] == pytest.approx(42_509)
    assert scenario["effectiveTaxRate"] == pytest.approx(21.491)

    patched = await auth_client.patch(f"/api/scenarios/{scenario['id']}", json={"baseMonthlyBudget": 2_000})
    assert patched.json()["yearlyContribution"] == pytest.approx(54_509)


async def test_reorder_move_and_select(auth_client):
    default = (await auth_client.get("/api/scenarios")).json()[0]
    second = (await auth_client.post("/api/scenarios", json={"name": "Second"})).json()

    reordered = await auth_client.post("/api/scenarios/reorder", json={"orderedIds": [second["id"], default["id"]]})
    assert [s["name"] for s in reordered.json()] == ["Second", "My Scenario"]

    bad = await auth_client.post("/api/scenarios/reorder", json={"orderedIds": [second["id"]]})
    assert bad.status_code == 400

    moved = await auth_client.post(f"/api/scenarios/{second['id']}/move", params={"direction": "down"})
    assert [s["name"] for s in moved.json()] == ["My Scenario", "Second"]
    assert (await auth_client.post(f"/api/scenarios/{second['id']}/move", params={"direction": "left"})).status_code == 422

    selected = await auth_client.post(f"/api/scenarios/{second['id']}/select-only")
    assert {s["name"]: s["isSelected"] for s in selected.json()} == {"My Scenario": False, "Second": True}

    toggled = await auth_client.post(f"/api/scenarios/{default['id']}/toggle")
    assert toggled.json()["isSelected"] is True


async def test_templates(auth_client):
    templates = (await auth_client.get("/api/scenarios/templates")).json()
    assert set(templates) == {"conservative", "moderate", "aggressive", "high_inflation"}

    created = await auth_client.post("/api/scenarios/templates", json={"template": "conservative"})
    assert created.json()["name"] == "Conservative"
    assert created.json()["swr"] == 3.5

    unknown = await auth_client.post("/api/scenarios/templates", json={"template": "moon"})
    assert unknown.status_code == 400


async def test_scenarios_of_other_users_are_off_limits(auth_client):
    mine = (await auth_client.get("/api/scenarios")).json()[0]
    other = await _other_user_headers(auth_client)

    assert (await auth_client.get(f"/api/scenarios/{mine['id']}", headers=other)).status_code == 403
    assert (await auth_client.patch(f"/api/scenarios/{mine['id']}", json={"name": "x"}, headers=other)).status_code == 403
    assert (await auth_client.get(f"/api/projections/{mine['id']}", headers=other)).status_code == 403
    assert (await auth_client.get(f"/api/scenarios/{uuid4()}")).status_code == 404


async def test_profile(auth_client):
    empty = (await auth_client.get("/api/profile")).json()
    assert empty == {"birthDate": None, "birthYear": None}

    updated = await auth_client.patch("/api/profile", json={"birthDate": "1990-05-01"})
    assert updated.status_code == 200
    assert updated.json() == {"birthDate": "1990-05-01", "birthYear": 1990}


async def test_projections(auth_client):
    await auth_client.patch("/api/profile", json={"birthDate": "1990-05-01"})
    await auth_client.post("/api/entries", json={"amount": 500_000, "timestamp": "2025-01-15T12:00:00Z"})

    response = await auth_client.get("/api/projections", params={"years": 10, "months": 24})
    assert response.status_code == 200
    body = response.json()

    assert body["display"] == "nominal"
    assert body["birthYear"] == 1990
    assert body["latestEntry"]["amount"] == 500_000
    assert len(body["projections"]) == 1

    projection = body["projections"][0]
    assert len(projection["yearlyRows"]) == 11
    assert len(projection["monthlyRows"]) == 24
    assert len(projection["milestones"]["milestones"]) == 43
    assert projection["yearlyRows"][0]["age"] == projection["yearlyRows"][0]["year"] - 1990
    assert projection["currentRow"]["netWorth"] >= 500_000
    assert projection["levelInfo"]["currentLevel"]["threshold"] <= projection["currentRow"]["netWorth"]
    assert projection["realTimeNetWorth"]["baseAmount"] == 500_000


async def test_projections_in_real_dollars(auth_client):
    await auth_client.post("/api/entries", json={"amount": 250_000, "timestamp": "2025-01-15T12:00:00Z"})

    nominal = (await auth_client.get("/api/projections", params={"years": 5})).json()["projections"][0]
    real = (await auth_client.get("/api/projections", params={"years": 5, "display": "real"})).json()["projections"][0]

    assert real["yearlyRows"][5]["netWorth"] < nominal["yearlyRows"][5]["netWorth"]
    assert real["yearlyRows"][5]["fiProgress"] == pytest.approx(nominal["yearlyRows"][5]["fiProgress"])
    assert (await auth_client.get("/api/projections", params={"display": "fancy"})).status_code == 422


async def test_projections_follow_selection(auth_client):
    default = (await auth_client.get("/api/scenarios")).json()[0]
    second = (await auth_client.post("/api/scenarios", json={"name": "Second"})).json()

    both = (await auth_client.get("/api/projections", params={"years": 1, "months": 0})).json()
    assert [p["scenario"]["name"] for p in both["projections"]] == ["My Scenario", "Second"]

    await auth_client.post(f"/api/scenarios/{default['id']}/toggle")
    one = (await auth_client.get("/api/projections", params={"years": 1, "months": 0})).json()
    assert [p["scenario"]["id"] for p in one["projections"]] == [second["id"]]

    single = await auth_client.get(f"/api/projections/{default['id']}", params={"years": 1})
    assert single.status_code == 200
    assert single.json()["scenario"]["id"] == default["id"]


async def test_projections_without_entries(auth_client):
    body = (await auth_client.get("/api/projections", params={"years": 2})).json()

    assert body["latestEntry"] is None
    assert body["projections"][0]["currentRow"]["netWorth"] == 0


async def test_tax_endpoints(auth_client):
    calc = await auth_client.post("/api/tax/calculate", json={"grossIncome": 100_000})
    assert calc.status_code == 200
    assert calc.json()["federalTax"] == pytest.approx(13_841)
    assert calc.json()["fica"]["totalFicaTax"] == pytest.approx(7_650)

    breakdown = await auth_client.post(
        "/api/tax/income-breakdown", json={"grossIncome": 100_000, "monthlySpending": 3_000}
    )
    assert breakdown.json()["totalAnnualSavings"] == pytest.approx(42_509)

    states = (await auth_client.get("/api/tax/states")).json()
    assert len(states) == 51


async def test_milestone_catalog(auth_client):
    response = await auth_client.get("/api/milestones/catalog")

    assert response.status_code == 200
    assert len(response.json()) == 43
