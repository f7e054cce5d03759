"""
In-memory stand-ins for the Supabase, OpenAI and Apify clients.

They implement only the call shapes the application uses, so tests can
inject them through create_app() and the repository/agent constructors.
"""

import re
import threading
from types import SimpleNamespace


# ─── SUPABASE ─────────────────────────────────────────────────

UNIQUE_KEYS = {
    "signals": ("workspace_id", "dedup_key"),
}


ILIKE_CLAUSE = re.compile(r'(\w+)\.ilike\.("(?:[^"\\]|\\.)*"|[^,]*)')


def _like_regex(pattern):
    out, chars = [], iter(pattern)
    for ch in chars:
        if ch == "\\":
            out.append(re.escape(next(chars, "")))
        elif ch in "*%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return re.compile("".join(out), re.IGNORECASE | re.DOTALL)


def _ilike_clause(match):
    column, value = match.groups()
    if value.startswith('"'):
        value = re.sub(r"\\(.)", r"\1", value[1:-1])
    regex = _like_regex(value)
    return lambda r: regex.fullmatch(r.get(column) or "") is not None


class FakeQuery:

    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.on_conflict = None
        self.ignore_duplicates = False
        self.filters = []
        self.ordering = []
        self.limit_n = None
        self.offset = 0
        self._negate = False

    # builders
    def select(self, columns="*"):
        self.op = "select"
        return self

    def insert(self, rows):
        self.op, self.payload = "insert", rows
        return self

    def update(self, changes):
        self.op, self.payload = "update", changes
        return self

    def delete(self):
        self.op = "delete"
        return self

    def upsert(self, rows, on_conflict="", ignore_duplicates=False):
        self.op, self.payload, self.on_conflict = "upsert", rows, on_conflict
        self.ignore_duplicates = ignore_duplicates
        return self

    # filters
    @property
    def not_(self):
        self._negate = True
        return self

    def _add(self, predicate):
        if self._negate:
            self._negate = False
            self.filters.append(lambda r: not predicate(r))
        else:
            self.filters.append(predicate)
        return self

    def eq(self, column, value):
        return self._add(lambda r: r.get(column) == value)

    def in_(self, column, values):
        values = list(values)
        return self._add(lambda r: r.get(column) in values)

    def is_(self, column, value):
        assert value == "null"
        return self._add(lambda r: r.get(column) is None)

    def or_(self, filters):
        clauses = [_ilike_clause(m) for m in ILIKE_CLAUSE.finditer(filters)]
        assert clauses, f"unsupported or filter: {filters}"
        return self._add(lambda r: any(c(r) for c in clauses))

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, n):
        self.limit_n = n
        return self

    def range(self, start, end):
        self.offset, self.limit_n = start, end - start + 1
        return self

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        with self.db.lock:
            self.db.calls.append((self.table, self.op))
            if (self.table, self.op) in self.db.failures:
                raise RuntimeError(f"simulated {self.op} failure on {self.table}")
            rows = self.db.tables.setdefault(self.table, [])
            data = getattr(self, f"_exec_{self.op}")(rows)
            return SimpleNamespace(data=data)

    def _exec_select(self, rows):
        found = [dict(r) for r in rows if self._matches(r)]
        for column, desc in reversed(self.ordering):
            found.sort(key=lambda r: r.get(column) or "", reverse=desc)
        found = found[self.offset:]
        if self.limit_n is not None:
            found = found[:self.limit_n]
        return found

    def _check_unique(self, rows, record):
        keys = UNIQUE_KEYS.get(self.table)
        if not keys or any(record.get(k) is None for k in keys):
            return
        for existing in rows:
            if all(existing.get(k) == record.get(k) for k in keys):
                raise RuntimeError("duplicate key value violates unique constraint")

    def _exec_insert(self, rows):
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = []
        for item in payload:
            record = dict(item)
            record.setdefault("id", self.db.next_id(self.table))
            record.setdefault("created_at", self.db.next_timestamp())
            self._check_unique(rows + inserted, record)
            inserted.append(record)
        rows.extend(inserted)
        return [dict(r) for r in inserted]

    def _exec_update(self, rows):
        updated = []
        for row in rows:
            if self._matches(row):
                row.update(self.payload)
                updated.append(dict(row))
        return updated

    def _exec_delete(self, rows):
        removed = [r for r in rows if self._matches(r)]
        rows[:] = [r for r in rows if not self._matches(r)]
        return [dict(r) for r in removed]

    def _exec_upsert(self, rows):
        keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
        result = []
        for item in self.payload:
            existing = next(
                (r for r in rows if all(r.get(k) == item.get(k) for k in keys)), None
            )
            if existing is not None:
                if not self.ignore_duplicates:
                    existing.update(item)
                    result.append(dict(existing))
                continue
            record = dict(item)
            record.setdefault("id", self.db.next_id(self.table))
            record.setdefault("created_at", self.db.next_timestamp())
            rows.append(record)
            result.append(dict(record))
        return result


class FakeAuth:

    def __init__(self):
        self.users = {}          # token -> user
        self.passwords = {}      # email -> (password, user)
        self.fail_refresh = False
        self.refresh_without_user = False
        self.otp_requests = []
        self.oauth_requests = []
        self.signed_out = 0
        self.current = None

    def add_user(self, token, user_id, email, full_name=None, password=None):
        user = SimpleNamespace(id=user_id, email=email,
                               user_metadata={"full_name": full_name} if full_name else {})
        self.users[token] = user
        if password:
            self.passwords[email] = (password, user, token)
        return user

    def _response(self, user, token):
        session = SimpleNamespace(access_token=token, refresh_token=f"refresh-{token}", user=user)
        self.current = session
        return SimpleNamespace(user=user, session=session)

    def get_user(self, jwt=None):
        if jwt not in self.users:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=self.users[jwt])

    def get_session(self):
        return self.current

    def sign_in_with_password(self, credentials):
        entry = self.passwords.get(credentials["email"])
        if not entry or entry[0] != credentials["password"]:
            raise RuntimeError("Invalid login credentials")
        _, user, token = entry
        return self._response(user, token)

    def sign_up(self, credentials):
        user = self.add_user(f"tok-{credentials['email']}", f"user-{len(self.users) + 1}",
                             credentials["email"], password=credentials["password"])
        return self._response(user, f"tok-{credentials['email']}")

    def sign_in_with_otp(self, credentials):
        self.otp_requests.append(credentials)

    def sign_in_with_oauth(self, credentials):
        self.oauth_requests.append(credentials)
        provider = credentials["provider"]
        if provider != "google":
            raise RuntimeError(f"Unsupported provider: {provider}")
        return SimpleNamespace(provider=provider,
                               url=f"https://auth.example.com/authorize?provider={provider}")

    def sign_out(self):
        self.signed_out += 1
        self.current = None

    def refresh_session(self):
        if self.fail_refresh or self.current is None:
            raise RuntimeError("refresh token expired")
        if self.refresh_without_user:
            return SimpleNamespace(user=None, session=None)
        return self._response(self.current.user, self.current.access_token + "-r")

    def update_user(self, attributes):
        user = self.current.user
        user.user_metadata = dict(user.user_metadata, **attributes.get("data", {}))
        return SimpleNamespace(user=user)


class FakeSupabase:

    def __init__(self):
        self.tables = {}
        self.calls = []
        self.failures = set()
        self.auth = FakeAuth()
        self.lock = threading.RLock()
        self._ids = 0
        self._clock = 0

    def table(self, name):
        return FakeQuery(self, name)

    def next_id(self, table):
        self._ids += 1
        return f"{table[:2]}_{self._ids}"

    def next_timestamp(self):
        self._clock += 1
        n = self._clock
        return f"2026-01-01T{n // 3600:02d}:{(n // 60) % 60:02d}:{n % 60:02d}Z"

    def fail(self, table, op):
        self.failures.add((table, op))

    def rows(self, table):
        return self.tables.get(table, [])

    def seed(self, table, **row):
        return self.table(table).insert(row).execute().data[0]


# ─── OPENAI ───────────────────────────────────────────────────

class FakeCompletions:

    def __init__(self, reply, error):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:

    def __init__(self, reply="  Curious what pushed you to look at alternatives?  ", error=None):
        self.completions = FakeCompletions(reply, error)
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self):
        return self.completions.calls

    @property
    def last_prompt(self):
        return self.calls[-1]["messages"][0]["content"]


# ─── APIFY ────────────────────────────────────────────────────

def reddit_item(n, keyword="crm"):
    return {
        "title": f"Looking for a {keyword} tool #{n}",
        "body": f"We outgrew spreadsheets, any {keyword} recommendations?",
        "username": f"redditor{n}",
        "url": f"https://reddit.com/r/saas/comments/{keyword}{n}",
    }


class FakeActor:

    def __init__(self, apify, actor_id):
        self.apify = apify
        self.actor_id = actor_id

    def call(self, run_input=None, timeout_secs=None, wait_secs=None):
        with self.apify.lock:
            self.apify.runs.append({"actor": self.actor_id, "input": run_input,
                                    "timeout_secs": timeout_secs})
            searches = run_input.get("searches", [])
            if any(s in self.apify.fail_for for s in searches):
                raise RuntimeError("actor exploded: upstream 503")
            items = []
            for s in searches:
                items.extend(self.apify.items_by_search.get(s, []))
            dataset_id = f"ds_{len(self.apify.runs)}"
            self.apify.datasets[dataset_id] = items
        return {"id": f"run_{len(self.apify.runs)}", "status": self.apify.status,
                "defaultDatasetId": dataset_id}


class FakeDataset:

    def __init__(self, items):
        self._items = items

    def list_items(self, limit=None):
        items = self._items if limit is None else self._items[:limit]
        return SimpleNamespace(items=list(items))


class FakeApify:

    def __init__(self, items_by_search=None, fail_for=(), status="SUCCEEDED"):
        self.items_by_search = items_by_search or {}
        self.fail_for = set(fail_for)
        self.status = status
        self.runs = []
        self.datasets = {}
        self.lock = threading.Lock()

    def actor(self, actor_id):
        return FakeActor(self, actor_id)

    def dataset(self, dataset_id):
        return FakeDataset(self.datasets[dataset_id])
