# tests/fake_supabase.py

"""
In-memory stand-in for the parts of supabase-py this API touches:
the PostgREST table builder and auth / auth.admin. execute() runs
under one lock so a conditional update is atomic, like a single
PostgREST request.
"""

import copy
import threading
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace


class FakeAuthError(Exception):
    def __init__(self, message):
        super().__init__(message)
        self.message = message


def _now():
    return datetime.now(timezone.utc).isoformat()


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.count_mode = None
        self.filters = []
        self.order_by = None
        self.limit_n = None
        self._negate = False

    # -- operations ---------------------------------------------------
    def select(self, columns="*", count=None):
        self.op = "select"
        self.count_mode = count
        return self

    def insert(self, rows):
        self.op = "insert"
        self.payload = rows
        return self

    def upsert(self, rows, on_conflict="id"):
        self.op = "upsert"
        self.payload = rows
        return self

    def update(self, values):
        self.op = "update"
        self.payload = values
        return self

    def delete(self):
        self.op = "delete"
        return self

    # -- filters ------------------------------------------------------
    @property
    def not_(self):
        self._negate = True
        return self

    def _add(self, predicate):
        if self._negate:
            self.filters.append(lambda row: not predicate(row))
            self._negate = False
        else:
            self.filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._add(lambda row: row.get(column) == value)

    def neq(self, column, value):
        return self._add(lambda row: row.get(column) != value)

    def is_(self, column, value):
        if value in ("null", None):
            return self._add(lambda row: row.get(column) is None)
        return self._add(lambda row: row.get(column) is value)

    def in_(self, column, values):
        values = list(values)
        return self._add(lambda row: row.get(column) in values)

    def lte(self, column, value):
        return self._add(lambda row: row.get(column) is not None and row[column] <= value)

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    # -- execution ----------------------------------------------------
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        with self.db.lock:
            self.db.calls.append((self.table, self.op))
            failure = self.db.failures.get((self.table, self.op))
            if failure is not None:
                raise failure

            rows = self.db.tables.setdefault(self.table, [])

            if self.op in ("insert", "upsert"):
                items = self.payload if isinstance(self.payload, list) else [self.payload]
                out = []
                for item in items:
                    item = dict(item)
                    item.setdefault("id", str(uuid.uuid4()))
                    existing = next((r for r in rows if r["id"] == item["id"]), None)
                    if existing is not None and self.op == "upsert":
                        existing.update(item)
                        out.append(copy.deepcopy(existing))
                        continue
                    item.setdefault("created_at", _now())
                    rows.append(item)
                    out.append(copy.deepcopy(item))
                return SimpleNamespace(data=out, count=None)

            matched = [r for r in rows if self._matches(r)]

            if self.op == "update":
                for r in matched:
                    r.update(self.payload)
                return SimpleNamespace(data=copy.deepcopy(matched), count=None)

            if self.op == "delete":
                self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
                return SimpleNamespace(data=copy.deepcopy(matched), count=None)

            if self.order_by:
                column, desc = self.order_by
                matched = sorted(matched, key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
            count = len(matched) if self.count_mode == "exact" else None
            if self.limit_n is not None:
                matched = matched[: self.limit_n]
            return SimpleNamespace(data=copy.deepcopy(matched), count=count)


class FakeAuthAdmin:
    def __init__(self, db):
        self.db = db

    def _fail(self, name):
        failure = self.db.auth_failures.get(name)
        if failure is not None:
            raise failure

    def _user(self, user_id):
        user = self.db.users.get(user_id)
        if user is None:
            raise FakeAuthError("User not found")
        return SimpleNamespace(**copy.deepcopy(user))

    def create_user(self, attrs):
        self._fail("create_user")
        with self.db.lock:
            if any(u["email"] == attrs["email"] for u in self.db.users.values()):
                raise FakeAuthError("A user with this email address has already been registered")
            user_id = str(uuid.uuid4())
            self.db.users[user_id] = {
                "id": user_id,
                "email": attrs["email"],
                "user_metadata": dict(attrs.get("user_metadata") or {}),
                "app_metadata": dict(attrs.get("app_metadata") or {}),
                "invited_at": None,
                "created_at": _now(),
            }
        return SimpleNamespace(user=self._user(user_id))

    def get_user_by_id(self, user_id):
        self._fail("get_user_by_id")
        return SimpleNamespace(user=self._user(user_id))

    def delete_user(self, user_id):
        self._fail("delete_user")
        with self.db.lock:
            if user_id not in self.db.users:
                raise FakeAuthError("User not found")
            del self.db.users[user_id]

    def update_user_by_id(self, user_id, attrs):
        self._fail("update_user_by_id")
        with self.db.lock:
            user = self.db.users.get(user_id)
            if user is None:
                raise FakeAuthError("User not found")
            # GoTrue merges metadata keys
            user["app_metadata"].update(attrs.get("app_metadata") or {})
            user["user_metadata"].update(attrs.get("user_metadata") or {})
        return SimpleNamespace(user=self._user(user_id))

    def generate_link(self, params):
        self._fail("generate_link")
        with self.db.lock:
            user = next((u for u in self.db.users.values() if u["email"] == params["email"]), None)
            if user is None:
                raise FakeAuthError("User not found")
            user["invited_at"] = _now()
            self.db.links.append(params)
        token = uuid.uuid4().hex
        return SimpleNamespace(
            properties=SimpleNamespace(action_link=f"https://auth.example/verify?token={token}&type=invite")
        )


class FakeAuth:
    def __init__(self, db):
        self.db = db
        self.admin = FakeAuthAdmin(db)

    def get_user(self, token):
        user_id = self.db.tokens.get(token)
        if user_id is None or user_id not in self.db.users:
            raise FakeAuthError("invalid JWT")
        return SimpleNamespace(user=self.admin._user(user_id))

    def exchange_code_for_session(self, params):
        user_id = self.db.codes.get(params.get("auth_code"))
        if user_id is None:
            raise FakeAuthError("invalid flow state")
        return SimpleNamespace(user=self.admin._user(user_id), session=SimpleNamespace(access_token="t"))


class FakeSupabase:
    def __init__(self):
        self.lock = threading.RLock()
        self.tables = {}
        self.users = {}
        self.tokens = {}
        self.codes = {}
        self.links = []
        self.calls = []
        self.failures = {}
        self.auth_failures = {}
        self.auth = FakeAuth(self)

    def table(self, name):
        return FakeQuery(self, name)

    # -- seeding helpers ----------------------------------------------
    def add_account(
        self,
        email,
        role="homeowner",
        managed_by=None,
        organization_id=None,
        activated=False,
        invited=False,
        profile=True,
        app_role=None,
        full_name=None,
        property_name=None,
    ):
        """Create auth user + profile; returns the id. Token is f'token-{id}'."""
        user_id = str(uuid.uuid4())
        app_metadata = {"role": app_role or role}
        if managed_by:
            app_metadata["managed_by"] = managed_by
        if organization_id:
            app_metadata["organization_id"] = organization_id
        if activated:
            app_metadata["activated"] = True

        self.users[user_id] = {
            "id": user_id,
            "email": email,
            "user_metadata": {"full_name": full_name, "property_name": property_name},
            "app_metadata": app_metadata,
            "invited_at": _now() if invited else None,
            "created_at": _now(),
        }
        if profile:
            self.tables.setdefault("profiles", []).append({
                "id": user_id,
                "role": role,
                "organization_id": organization_id,
                "managed_by": managed_by,
                "activated_at": _now() if activated else None,
                "created_at": _now(),
            })
        self.tokens[f"token-{user_id}"] = user_id
        return user_id

    def add_org(self, name):
        org = {"id": str(uuid.uuid4()), "name": name, "created_at": _now()}
        self.tables.setdefault("organizations", []).append(org)
        return org["id"]

    def add_row(self, table, **values):
        values.setdefault("id", str(uuid.uuid4()))
        self.tables.setdefault(table, []).append(values)
        return values["id"]

    def rows(self, table, **filters):
        return [
            r for r in self.tables.get(table, [])
            if all(r.get(k) == v for k, v in filters.items())
        ]

    def profile(self, user_id):
        found = self.rows("profiles", id=user_id)
        return found[0] if found else None


# -----------------------------------------------------
# Test helpers
# -----------------------------------------------------
def identity_for(db: FakeSupabase, user_id: str):
    """The Identity the auth dependency would build for this user."""
    from models.identity import Identity
    return Identity.from_auth_user(db.auth.admin._user(user_id))


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer token-{user_id}"}
