from expensewise.webapp import EXTENSION_KEY


def post_expense(client, amount, category="Groceries", date="2024-10-01", notes=""):
    return client.post(
        "/expenses",
        json={"date": date, "amount": amount, "category": category, "notes": notes},
    )


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_state_defaults(client):
    resp = client.get("/state")
    assert resp.status_code == 200
    assert resp.get_json() == {"monthlyBudget": 100000.0, "archivedSpend": 0.0}


def test_state_partial_update(client):
    client.post("/state", json={"archivedSpend": 30})
    resp = client.post("/state", json={"monthlyBudget": 1500})
    assert resp.status_code == 200
    assert resp.get_json() == {"monthlyBudget": 1500.0, "archivedSpend": 30.0}


def test_state_rejects_negative(client):
    resp = client.post("/state", json={"monthlyBudget": -10})
    assert resp.status_code == 400
    assert "negative" in resp.get_json()["message"]


def test_create_and_list_expenses(client):
    first = post_expense(client, 250, date="2024-10-01", notes="weekly shop")
    second = post_expense(client, "40.5", category="Transport", date="2024-10-03")
    assert first.status_code == 201
    body = first.get_json()
    assert isinstance(body["id"], str)
    assert body == {
        "id": body["id"],
        "date": "2024-10-01",
        "amount": 250.0,
        "category": "Groceries",
        "notes": "weekly shop",
    }
    assert second.get_json()["amount"] == 40.5

    listed = client.get("/expenses").get_json()
    assert [e["date"] for e in listed] == ["2024-10-03", "2024-10-01"]


def test_create_expense_validation(client):
    resp = client.post("/expenses", json={"date": "2024-10-01", "category": "Groceries"})
    assert resp.status_code == 400
    assert resp.get_json() == {"message": "amount is required"}

    resp = post_expense(client, "ten")
    assert resp.status_code == 400

    resp = post_expense(client, -3)
    assert resp.status_code == 400

    resp = post_expense(client, 3, date="01-10-2024")
    assert resp.status_code == 400

    resp = post_expense(client, 3, category="Spaceships")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Unknown category: Spaceships"


def test_update_expense(client):
    expense_id = post_expense(client, 10, notes="tea").get_json()["id"]
    resp = client.put(f"/expenses/{expense_id}", json={"amount": 14, "notes": "tea and cake"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["amount"] == 14.0
    assert body["notes"] == "tea and cake"
    assert body["date"] == "2024-10-01"


def test_update_unknown_expense(client):
    resp = client.put("/expenses/12345", json={"amount": 1})
    assert resp.status_code == 404
    assert resp.get_json() == {"message": "Expense not found"}


def test_delete_expense(client):
    expense_id = post_expense(client, 10).get_json()["id"]
    resp = client.delete(f"/expenses/{expense_id}")
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Expense deleted"}
    assert client.get("/expenses").get_json() == []


def test_reset(client):
    client.post("/state", json={"monthlyBudget": 1000, "archivedSpend": 0})
    post_expense(client, 100)
    post_expense(client, 200)

    resp = client.post("/expenses/reset")

    assert resp.status_code == 200
    assert resp.get_json() == {"monthlyBudget": 700.0, "archivedSpend": 0.0}
    assert client.get("/expenses").get_json() == []


def test_reset_without_state_is_server_error(bare_app):
    resp = bare_app.test_client().post("/expenses/reset")
    assert resp.status_code == 500
    assert resp.get_json() == {"message": "Global state has not been initialized"}


def test_categories(client):
    resp = client.post("/categories", json={"name": "Pets"})
    assert resp.status_code == 201
    assert resp.get_json() == {"name": "Pets", "icon": "other"}

    dup = client.post("/categories", json={"name": "PETS"})
    assert dup.status_code == 400
    assert dup.get_json() == {"message": "Category already exists"}

    names = [c["name"] for c in client.get("/categories").get_json()]
    assert "Pets" in names


def test_category_icon_from_classifier(app, client):
    class Stub:
        def suggest(self, name, icon_keys):
            assert "education" in icon_keys
            return "education"

    app.extensions[EXTENSION_KEY]["icon_classifier"] = Stub()
    resp = client.post("/categories", json={"name": "Courses"})
    assert resp.get_json() == {"name": "Courses", "icon": "education"}


def test_delete_category_cascade(client):
    client.post("/categories", json={"name": "Travel"})
    client.post("/budgets", json={"category": "Travel", "amount": 500})
    post_expense(client, 100, category="Travel")
    post_expense(client, 60, category="Travel")

    resp = client.delete("/categories/Travel")

    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Category and associated data deleted"}
    assert client.get("/budgets").get_json() == []
    assert client.get("/expenses").get_json() == []


def test_delete_absent_category(client):
    resp = client.delete("/categories/Ghost")
    assert resp.status_code == 200


def test_delete_other_is_rejected(client):
    resp = client.delete("/categories/Other")
    assert resp.status_code == 400
    assert "Other" in [c["name"] for c in client.get("/categories").get_json()]


def test_budget_upsert(client):
    first = client.post("/budgets", json={"category": "Health", "amount": 200})
    second = client.post("/budgets", json={"category": "Health", "amount": 250})
    assert first.status_code == 201
    assert second.get_json() == {"category": "Health", "amount": 250.0}
    assert client.get("/budgets").get_json() == [{"category": "Health", "amount": 250.0}]


def test_budget_validation(client):
    assert client.post("/budgets", json={"category": "Health", "amount": -1}).status_code == 400
    assert client.post("/budgets", json={"category": "Nope", "amount": 1}).status_code == 400
    assert client.post("/budgets", json={"amount": 1}).status_code == 400


def test_expense_filters_and_sorting(client):
    post_expense(client, 30, date="2024-09-28", notes="Bus pass", category="Transport")
    post_expense(client, 120, date="2024-10-02", notes="Big grocery run")
    post_expense(client, 15, date="2024-10-05", notes="grocery top-up")

    october = client.get("/expenses?month=2024-10&sort=amount&order=asc").get_json()
    assert [e["amount"] for e in october] == [15.0, 120.0]

    searched = client.get("/expenses?q=GROCERY").get_json()
    assert [e["date"] for e in searched] == ["2024-10-05", "2024-10-02"]

    transport = client.get("/expenses?category=Transport").get_json()
    assert [e["notes"] for e in transport] == ["Bus pass"]

    ranged = client.get("/expenses?start=2024-10-01&end=2024-10-03").get_json()
    assert [e["amount"] for e in ranged] == [120.0]

    by_category = client.get("/expenses?sort=category_asc").get_json()
    assert [e["category"] for e in by_category] == ["Groceries", "Groceries", "Transport"]


def test_expense_filter_validation(client):
    assert client.get("/expenses?sort=notes").status_code == 400
    assert client.get("/expenses?order=sideways").status_code == 400
    assert client.get("/expenses?start=yesterday").status_code == 400


def test_summary(client):
    client.post("/state", json={"monthlyBudget": 500, "archivedSpend": 20})
    client.post("/budgets", json={"category": "Groceries", "amount": 100})
    post_expense(client, 150, date="2024-10-01")
    post_expense(client, 50, category="Transport", date="2024-10-02")

    summary = client.get("/summary").get_json()

    assert summary["totalExpenses"] == 200.0
    assert summary["totalSpendToDate"] == 220.0
    assert summary["remainingBudget"] == 280.0
    assert summary["categoryTotals"] == {"Groceries": 150.0, "Transport": 50.0}
    assert summary["dailyTotals"] == {"2024-10-01": 150.0, "2024-10-02": 50.0}
    assert summary["budgetStatus"][0]["over"] is True


def test_advisor_uses_configured_client(app, client):
    from expensewise.advisor import SpendingAdvisor

    class Response:
        text = "## Spending Overview\nAll good."

    class Models:
        def __init__(self):
            self.prompts = []

        def generate_content(self, model, contents):
            self.prompts.append(contents)
            return Response()

    class Client:
        models = Models()

    stub = Client()
    app.extensions[EXTENSION_KEY]["advisor"] = SpendingAdvisor(None, client=stub)
    post_expense(client, 99, notes="headphones")

    resp = client.post("/advisor")

    assert resp.status_code == 200
    assert resp.get_json() == {"analysis": "## Spending Overview\nAll good."}
    assert "headphones" in stub.models.prompts[0]


def test_advisor_without_expenses(client):
    resp = client.post("/advisor")
    assert "no expenses" in resp.get_json()["analysis"]


def test_unknown_route_is_json(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert "message" in resp.get_json()


def test_non_object_body(client):
    resp = client.post("/expenses", json=[1, 2, 3])
    assert resp.status_code == 400
    assert resp.get_json() == {"message": "Request body must be a JSON object"}
