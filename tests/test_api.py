"""
HTTP API tests
Run: pytest tests/test_api.py -v
"""

from astex.db.models import AuditLog, PaymentInfo, Transaction, User, UserRole


SIGN_UP = {"email": "x@y.com", "password": "p", "name": "N", "phone": "123"}


class TestHealth:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "operational"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "healthy"

    def test_request_id_echoed(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestSignUpEndpoint:

    def test_sign_up_then_duplicate_phone(self, client, db):
        first = client.post("/user/sign-up", json=SIGN_UP)
        assert first.status_code == 201
        body = first.json()
        assert body["success"] is True
        assert body["message"] == "User created successfully"
        assert body["user"]["email"] == "x@y.com"
        assert "password" not in body["user"]

        second = client.post("/user/sign-up", json={**SIGN_UP, "email": "other@y.com"})
        assert second.status_code == 409
        assert second.json()["success"] is False
        assert db.query(User).count() == 1

    def test_unknown_field_rejected(self, client):
        response = client.post("/user/sign-up", json={**SIGN_UP, "isAdmin": True})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_missing_field_rejected(self, client, db):
        payload = dict(SIGN_UP)
        del payload["phone"]

        response = client.post("/user/sign-up", json=payload)
        assert response.status_code == 400
        assert db.query(User).count() == 0

    def test_login_and_me(self, client):
        client.post("/user/sign-up", json={**SIGN_UP, "password": "hunter22"})

        login = client.post("/user/login", json={"email": "x@y.com", "password": "hunter22"})
        assert login.status_code == 200
        token = login.json()["token"]

        me = client.get("/user/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["phone"] == "123"

    def test_fixture_user_can_log_in(self, client, make_user):
        user = make_user()

        response = client.post("/user/login", json={"email": user.email, "password": "password123"})

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user.id

    def test_login_wrong_password(self, client):
        client.post("/user/sign-up", json=SIGN_UP)

        response = client.post("/user/login", json={"email": "x@y.com", "password": "nope"})
        assert response.status_code == 401


class TestCreateOrderEndpoint:

    def test_anonymous_rejected_without_writes(self, client, db, provider):
        response = client.post("/create-order", json={"amount": 10000})

        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"
        assert provider.calls == []
        assert db.query(Transaction).count() == 0

    def test_invalid_token_rejected(self, client, provider):
        response = client.post(
            "/create-order",
            json={"amount": 10000},
            headers={"Authorization": "Bearer not-a-token"},
        )
        assert response.status_code == 401
        assert provider.calls == []

    def test_anonymous_with_bad_body_is_401(self, client, provider):
        response = client.post("/create-order", json={"amount": "lots", "extra": 1})

        assert response.status_code == 401
        assert provider.calls == []

    def test_deleted_users_token_rejected(self, client, db, provider, make_user, headers_for, admin_headers):
        user = make_user()
        headers = headers_for(user)
        assert client.delete(f"/admin/users/{user.id}", headers=admin_headers).status_code == 200

        response = client.post("/create-order", json={"amount": 100}, headers=headers)

        assert response.status_code == 401
        assert provider.calls == []
        assert db.query(Transaction).count() == 0

    def test_creates_pending_deposit(self, client, db, make_user, headers_for):
        user = make_user()

        response = client.post(
            "/create-order",
            json={"amount": 10000},
            headers={**headers_for(user), "User-Agent": "pytest-agent", "X-Forwarded-For": "1.2.3.4, 10.0.0.1"},
        )

        assert response.status_code == 200
        order_id = response.json()["orderId"]
        txn = db.query(Transaction).one()
        assert txn.transaction_id == order_id
        assert '"ipAddress": "1.2.3.4"' in txn.meta_json

    def test_provider_failure_is_500(self, client, db, provider, make_user, headers_for):
        user = make_user()
        provider.fail = True

        response = client.post("/create-order", json={"amount": 10000}, headers=headers_for(user))

        assert response.status_code == 500
        assert response.json()["error"] == "Error creating order"
        assert db.query(Transaction).count() == 0


class TestDepositEndpoints:

    def test_active_target_with_qr(self, client, admin_headers):
        client.post("/admin/payment-info", json={"upiId": "pay@bank", "merchantName": "Astex"}, headers=admin_headers)

        response = client.get("/payment-info/active", params={"amount": "100"})

        assert response.status_code == 200
        body = response.json()
        assert body["paymentInfo"]["upiId"] == "pay@bank"
        assert body["upiLink"] == "upi://pay?pa=pay@bank&pn=Astex&am=100.00&cu=INR"
        assert body["qrCode"].startswith("data:image/png;base64,")

    def test_active_target_without_amount(self, client, admin_headers):
        client.post("/admin/payment-info", json={"upiId": "pay@bank", "merchantName": "Astex"}, headers=admin_headers)

        body = client.get("/payment-info/active").json()

        assert "qrCode" not in body

    def test_no_active_target(self, client):
        assert client.get("/payment-info/active").status_code == 404

    def test_create_deposit(self, client, make_user, headers_for, admin_headers):
        client.post("/admin/payment-info", json={"upiId": "pay@bank", "merchantName": "Astex"}, headers=admin_headers)
        user = make_user()

        response = client.post("/create-deposit", json={"amount": 250}, headers=headers_for(user))

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["amount"] == 250.0
        assert body["transactionId"].startswith("DEP")


class TestAdminAccess:

    def test_no_token(self, client):
        assert client.get("/admin/payment-info").status_code == 401

    def test_non_admin_forbidden(self, client, make_user, headers_for):
        user = make_user()

        response = client.get("/admin/payment-info", headers=headers_for(user))
        assert response.status_code == 403


class TestPaymentInfoEndpoints:

    def test_create_replaces_active(self, client, db, admin_headers):
        a = client.post("/admin/payment-info", json={"upiId": "a@bank", "merchantName": "M1"}, headers=admin_headers)
        b = client.post("/admin/payment-info", json={"upiId": "b@bank", "merchantName": "M2"}, headers=admin_headers)

        assert a.status_code == 200
        assert b.json()["paymentInfo"]["isActive"] is True

        listing = client.get("/admin/payment-info", headers=admin_headers).json()["paymentInfoList"]
        active = [r["upiId"] for r in listing if r["isActive"]]
        assert active == ["b@bank"]

    def test_missing_fields(self, client, db, admin_headers):
        response = client.post("/admin/payment-info", json={"upiId": "a@bank"}, headers=admin_headers)

        assert response.status_code == 400
        assert db.query(PaymentInfo).count() == 0

    def test_update_reactivates(self, client, admin_headers):
        a = client.post("/admin/payment-info", json={"upiId": "a@bank", "merchantName": "M1"}, headers=admin_headers)
        client.post("/admin/payment-info", json={"upiId": "b@bank", "merchantName": "M2"}, headers=admin_headers)

        response = client.put(
            "/admin/payment-info",
            json={"id": a.json()["paymentInfo"]["id"], "isActive": True},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Payment information updated successfully"
        active = client.get("/payment-info/active").json()["paymentInfo"]
        assert active["upiId"] == "a@bank"

    def test_update_unknown(self, client, admin_headers):
        response = client.put("/admin/payment-info", json={"id": 9999, "upiId": "x@bank"}, headers=admin_headers)
        assert response.status_code == 404


class TestUserAdminEndpoints:

    def test_get_user_detail(self, client, make_user, admin_headers):
        user = make_user()

        body = client.get(f"/admin/users/{user.id}", headers=admin_headers).json()

        assert body["email"] == user.email
        assert body["transactions"] == []
        assert body["loanRequest"] is None
        assert "passwordHash" not in body

    def test_verify_twice_sends_one_email(self, client, db, make_user, mailer, admin_headers):
        user = make_user()

        first = client.patch(f"/admin/users/{user.id}", headers=admin_headers)
        second = client.patch(f"/admin/users/{user.id}", headers=admin_headers)

        assert first.json() == {"success": True}
        assert second.json() == {"success": True}
        assert mailer.sent == [user.email]
        db.expire_all()
        assert db.get(User, user.id).is_verified is True

    def test_update_user(self, client, make_user, admin_headers):
        user = make_user()

        response = client.put(
            f"/admin/users/{user.id}",
            json={"name": "Renamed", "ifscCode": "SBIN0000001"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Renamed"
        assert response.json()["user"]["ifscCode"] == "SBIN0000001"

    def test_update_user_identity_clash(self, client, make_user, admin_headers):
        first = make_user()
        second = make_user()

        response = client.put(f"/admin/users/{second.id}", json={"email": first.email}, headers=admin_headers)
        assert response.status_code == 409

    def test_delete_user_twice(self, client, db, make_user, admin_headers):
        user = make_user()

        first = client.delete(f"/admin/users/{user.id}", headers=admin_headers)
        second = client.delete(f"/admin/users/{user.id}", headers=admin_headers)

        assert first.json() == {"success": True}
        assert second.status_code == 500
        assert second.json() == {"success": False, "error": "Failed to delete user"}
        assert db.query(User).filter(User.role == UserRole.USER).count() == 0
        assert db.query(AuditLog).filter(AuditLog.event_type == "user_deleted").count() == 1


class TestOrderEndpoints:

    def _payload(self, user_id, **overrides):
        data = {
            "userId": user_id,
            "symbol": "INFY",
            "quantity": 10,
            "buyPrice": 100,
            "type": "LONG",
            "status": "OPEN",
            "tradeAmount": 1000,
            "tradeDate": "2024-01-15",
        }
        data.update(overrides)
        return data

    def test_create_edit_delete(self, client, make_user, admin_headers):
        user = make_user()

        created = client.post("/admin/orders", json=self._payload(user.id), headers=admin_headers)
        assert created.status_code == 200
        order = created.json()["order"]
        assert order["profitLoss"] is None

        edited = client.put(
            f"/admin/orders/{order['id']}",
            json=self._payload(user.id, sellPrice=112.5, status="CLOSED"),
            headers=admin_headers,
        )
        assert edited.status_code == 200
        assert edited.json()["order"]["profitLoss"] == 125.0

        deleted = client.delete(f"/admin/orders/{order['id']}", headers=admin_headers)
        assert deleted.json() == {"success": True}
        assert client.delete(f"/admin/orders/{order['id']}", headers=admin_headers).status_code == 404

    def test_bad_trade_type(self, client, make_user, admin_headers):
        user = make_user()

        response = client.post("/admin/orders", json=self._payload(user.id, type="SIDEWAYS"), headers=admin_headers)
        assert response.status_code == 400


class TestSettleEndpoint:

    def test_settle_once(self, client, make_user, headers_for, admin_headers):
        user = make_user()
        order_id = client.post("/create-order", json={"amount": 5000}, headers=headers_for(user)).json()["orderId"]

        first = client.post(
            f"/admin/transactions/{order_id}/settle", json={"status": "COMPLETED"}, headers=admin_headers,
        )
        second = client.post(
            f"/admin/transactions/{order_id}/settle", json={"status": "FAILED"}, headers=admin_headers,
        )

        assert first.status_code == 200
        assert first.json()["transaction"]["status"] == "COMPLETED"
        assert first.json()["transaction"]["amount"] == 50.0
        assert second.status_code == 409

    def test_settle_unknown(self, client, admin_headers):
        response = client.post(
            "/admin/transactions/order_nope/settle", json={"status": "COMPLETED"}, headers=admin_headers,
        )
        assert response.status_code == 404
