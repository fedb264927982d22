"""Unit tests for the bucket reconciler."""

import pytest

from conftest import FIXED_STAMP, client_error
from customs3.reconciler import DiagnosticKind, FailurePolicy, Reconciler
from customs3.state.models import DesiredItem, ManagedItem, ManagedItemList
from customs3.utils.errors import ErrorCategory, ErrorSeverity, ValidationError


def make_reconciler(store, clock, policy=FailurePolicy.ABORT):
    return Reconciler(store, policy=policy, clock=clock)


# ==================== Create ====================


class TestCreate:
    """Tests for the create pass."""

    def test_single_bucket_scenario(self, store, clock):
        reconciler = make_reconciler(store, clock)
        desired = [DesiredItem.from_declared("logs-bucket", "team=infra")]

        result = reconciler.create(desired)

        assert result.is_success()
        assert len(result.diagnostics) == 0
        assert result.managed.items == [
            ManagedItem(name="logs-bucket", tags={"tfkey": "team=infra"}, observed_at=FIXED_STAMP)
        ]
        assert result.managed.last_updated == FIXED_STAMP
        assert store.buckets == {"logs-bucket": {"tfkey": "team=infra"}}

    def test_preserves_length_and_order(self, store, clock, desired_three):
        result = make_reconciler(store, clock).create(desired_three)

        assert result.managed.names() == ["alpha-bucket", "beta-bucket", "gamma-bucket"]
        assert store.calls == [
            ("create", "alpha-bucket"),
            ("tag", "alpha-bucket"),
            ("create", "beta-bucket"),
            ("tag", "beta-bucket"),
            ("create", "gamma-bucket"),
            ("tag", "gamma-bucket"),
        ]

    def test_every_created_bucket_is_tagged(self, store, clock, desired_three):
        make_reconciler(store, clock).create(desired_three)

        assert store.calls_for("tag") == store.calls_for("create")

    def test_names_and_tags_are_normalized(self, store, clock):
        desired = [DesiredItem(name='"quoted-bucket"', tags={"tfkey": '"v1"'})]

        result = make_reconciler(store, clock).create(desired)

        assert store.calls_for("create") == ["quoted-bucket"]
        assert result.managed.items[0].name == "quoted-bucket"
        assert result.managed.items[0].tags == {"tfkey": "v1"}

    def test_create_failure_aborts_pass(self, store, clock, desired_three):
        store.fail("create", "beta-bucket", client_error("BucketAlreadyExists", "CreateBucket"))

        result = make_reconciler(store, clock).create(desired_three)

        assert not result.is_success()
        assert result.aborted is True
        assert result.skipped == ["gamma-bucket"]
        assert result.managed.names() == ["alpha-bucket"]
        assert "gamma-bucket" not in store.calls_for("create")

        create_failures = result.diagnostics.of_kind(DiagnosticKind.CREATE_FAILED)
        assert len(create_failures) == 1
        assert len(result.diagnostics) == 1
        diagnostic = create_failures[0]
        assert diagnostic.bucket == "beta-bucket"
        assert diagnostic.operation == "create"
        assert diagnostic.error.category == ErrorCategory.PROVISIONING
        assert "already taken" in diagnostic.detail

    def test_create_failure_with_continue_policy(self, store, clock, desired_three):
        store.fail("create", "beta-bucket")

        result = make_reconciler(store, clock, FailurePolicy.CONTINUE).create(desired_three)

        assert result.aborted is False
        assert result.skipped == []
        assert result.managed.names() == ["alpha-bucket", "gamma-bucket"]
        assert result.failed_buckets() == ["beta-bucket"]

    def test_tag_failure_is_a_warning(self, store, clock, desired_three):
        store.fail("tag", "alpha-bucket", client_error("InvalidTag", "PutBucketTagging"))

        result = make_reconciler(store, clock).create(desired_three)

        assert result.is_success()
        assert result.aborted is False
        assert result.managed.names() == ["alpha-bucket", "beta-bucket", "gamma-bucket"]
        assert result.managed.items[0].tags == {}
        assert "alpha-bucket" in store.buckets

        warnings = result.diagnostics.warnings()
        assert len(warnings) == 1
        assert warnings[0].kind == DiagnosticKind.TAG_FAILED
        assert warnings[0].severity == ErrorSeverity.WARNING

    def test_duplicate_names_rejected_before_remote_calls(self, store, clock):
        desired = [
            DesiredItem.from_declared("dup-bucket", "a"),
            DesiredItem.from_declared('"dup-bucket"', "b"),
        ]

        with pytest.raises(ValidationError) as exc_info:
            make_reconciler(store, clock).create(desired)

        assert "more than once" in exc_info.value.message
        assert store.calls == []

    def test_empty_name_rejected(self, store, clock):
        with pytest.raises(ValidationError):
            make_reconciler(store, clock).create([DesiredItem(name='""')])
        assert store.calls == []

    def test_each_list_gets_fresh_id(self, store, clock):
        reconciler = make_reconciler(store, clock)
        first = reconciler.create([DesiredItem.from_declared("one-bucket", "x")])
        second = reconciler.create([DesiredItem.from_declared("two-bucket", "x")])

        assert first.managed.id != second.managed.id

    def test_empty_desired_list(self, store, clock):
        result = make_reconciler(store, clock).create([])

        assert result.is_success()
        assert result.managed.items == []
        assert store.calls == []


# ==================== Update ====================


class TestUpdate:
    """Tests for the update pass."""

    def test_update_never_creates(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        created = reconciler.create(desired_three)
        store.calls.clear()

        changed = [DesiredItem.from_declared(d.name, "team=new") for d in desired_three]
        result = reconciler.update(changed, previous=created.managed)

        assert result.is_success()
        assert store.calls_for("create") == []
        assert store.calls_for("tag") == ["alpha-bucket", "beta-bucket", "gamma-bucket"]
        assert all(tags == {"tfkey": "team=new"} for tags in store.buckets.values())
        assert result.managed.id == created.managed.id

    def test_update_twice_is_idempotent(self, store, clock):
        store.add("logs-bucket")
        reconciler = make_reconciler(store, clock)
        desired = [DesiredItem.from_declared("logs-bucket", "team=infra")]

        reconciler.update(desired)
        result = reconciler.update(desired)

        assert store.buckets["logs-bucket"] == {"tfkey": "team=infra"}
        assert result.managed.items[0].tags == {"tfkey": "team=infra"}
        assert result.managed.items[0].observed_at == FIXED_STAMP

    def test_tagging_missing_bucket_aborts(self, store, clock, desired_three):
        store.add("alpha-bucket")
        store.add("gamma-bucket")

        result = make_reconciler(store, clock).update(desired_three)

        assert result.aborted is True
        assert result.skipped == ["gamma-bucket"]
        assert result.managed.names() == ["alpha-bucket"]
        failures = result.diagnostics.of_kind(DiagnosticKind.TAG_FAILED)
        assert len(failures) == 1
        assert failures[0].is_error
        assert failures[0].bucket == "beta-bucket"
        assert "does not exist" in failures[0].detail

    def test_failed_buckets_keep_previous_record(self, store, clock):
        previous = ManagedItemList(
            items=[
                ManagedItem(name="alpha-bucket", tags={"tfkey": "old"}, observed_at="earlier"),
                ManagedItem(name="beta-bucket", tags={"tfkey": "old"}, observed_at="earlier"),
            ]
        )
        store.add("alpha-bucket")
        store.add("beta-bucket")
        store.fail("tag", "alpha-bucket")
        desired = [
            DesiredItem.from_declared("alpha-bucket", "new"),
            DesiredItem.from_declared("beta-bucket", "new"),
        ]

        result = make_reconciler(store, clock).update(desired, previous=previous)

        assert result.aborted is True
        assert store.calls_for("tag") == ["alpha-bucket"]
        assert [item.tags for item in result.managed.items] == [{"tfkey": "old"}, {"tfkey": "old"}]
        assert result.managed.id == previous.id

    def test_continue_policy_tags_remaining(self, store, clock, desired_three):
        store.add("alpha-bucket")
        store.add("gamma-bucket")

        result = make_reconciler(store, clock, FailurePolicy.CONTINUE).update(desired_three)

        assert result.managed.names() == ["alpha-bucket", "gamma-bucket"]
        assert result.failed_buckets() == ["beta-bucket"]

    def test_undeclared_bucket_is_reported(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        created = reconciler.create(desired_three)

        result = reconciler.update(desired_three[:2], previous=created.managed)

        assert result.is_success()
        assert result.managed.names() == ["alpha-bucket", "beta-bucket"]
        assert "gamma-bucket" in store.buckets
        warnings = result.diagnostics.of_kind(DiagnosticKind.NO_LONGER_DECLARED)
        assert [w.bucket for w in warnings] == ["gamma-bucket"]
        assert warnings[0].severity == ErrorSeverity.WARNING


# ==================== Apply ====================


class TestApply:
    """Tests for the apply pass."""

    def test_first_apply_creates_everything(self, store, clock, desired_three):
        result = make_reconciler(store, clock).apply(desired_three)

        assert result.is_success()
        assert store.calls_for("create") == ["alpha-bucket", "beta-bucket", "gamma-bucket"]
        assert result.managed.names() == ["alpha-bucket", "beta-bucket", "gamma-bucket"]

    def test_recovers_buckets_a_failed_create_left_behind(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        store.fail("create", "beta-bucket")
        first = reconciler.apply(desired_three)
        assert first.managed.names() == ["alpha-bucket"]
        store.failures.clear()
        store.calls.clear()

        result = reconciler.apply(desired_three, previous=first.managed)

        assert result.is_success()
        assert store.calls_for("create") == ["beta-bucket", "gamma-bucket"]
        assert store.calls_for("tag") == ["beta-bucket", "gamma-bucket", "alpha-bucket"]
        assert result.managed.names() == ["alpha-bucket", "beta-bucket", "gamma-bucket"]
        assert result.managed.id == first.managed.id

    def test_create_abort_skips_managed_buckets(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        previous = reconciler.create(desired_three[:1]).managed
        store.calls.clear()
        store.fail("create", "beta-bucket")

        result = reconciler.apply(desired_three, previous=previous)

        assert result.aborted is True
        assert store.calls_for("tag") == []
        assert result.skipped == ["gamma-bucket", "alpha-bucket"]
        assert result.managed.names() == ["alpha-bucket"]
        assert result.failed_buckets() == ["beta-bucket"]

    def test_undeclared_bucket_reported_without_update(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        previous = reconciler.create(desired_three[:1]).managed

        result = reconciler.apply(desired_three[1:], previous=previous)

        assert result.managed.names() == ["beta-bucket", "gamma-bucket"]
        warnings = result.diagnostics.of_kind(DiagnosticKind.NO_LONGER_DECLARED)
        assert [w.bucket for w in warnings] == ["alpha-bucket"]


# ==================== Read ====================


class TestRead:
    """Tests for the read pass."""

    def test_create_then_read_succeeds(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        created = reconciler.create(desired_three)

        result = reconciler.read(created.managed)

        assert result.is_success()
        assert result.managed.items == created.managed.items
        assert result.managed.id == created.managed.id
        assert store.calls_for("exists") == ["alpha-bucket", "beta-bucket", "gamma-bucket"]

    def test_missing_bucket_is_reported_as_drift(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock, FailurePolicy.CONTINUE)
        created = reconciler.create(desired_three)
        del store.buckets["beta-bucket"]

        result = reconciler.read(created.managed)

        assert result.managed.names() == ["alpha-bucket", "gamma-bucket"]
        drift = result.diagnostics.of_kind(DiagnosticKind.EXISTS_CHECK_FAILED)
        assert len(drift) == 1
        assert drift[0].bucket == "beta-bucket"
        assert "no longer exists" in drift[0].detail

    def test_check_error_aborts_and_keeps_unchecked(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        created = reconciler.create(desired_three)
        store.fail("exists", "alpha-bucket", client_error("AccessDenied", "HeadBucket"))

        result = reconciler.read(created.managed)

        assert result.aborted is True
        assert result.skipped == ["beta-bucket", "gamma-bucket"]
        assert result.managed.names() == ["alpha-bucket", "beta-bucket", "gamma-bucket"]
        assert store.calls_for("exists") == ["alpha-bucket"]
        assert result.diagnostics.errors()[0].error.category == ErrorCategory.PERMISSION


# ==================== Delete ====================


class TestDelete:
    """Tests for the delete pass."""

    def test_delete_removes_everything(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        created = reconciler.create(desired_three)

        result = reconciler.delete(created.managed)

        assert result.is_success()
        assert result.managed.is_empty()
        assert not any(store.exists(name) for name in created.managed.names())

    def test_delete_failure_keeps_remaining(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock)
        created = reconciler.create(desired_three)
        store.fail("delete", "beta-bucket", client_error("BucketNotEmpty", "DeleteBucket"))

        result = reconciler.delete(created.managed)

        assert result.aborted is True
        assert result.managed.names() == ["beta-bucket", "gamma-bucket"]
        assert set(store.buckets) == {"beta-bucket", "gamma-bucket"}
        failures = result.diagnostics.of_kind(DiagnosticKind.DELETE_FAILED)
        assert len(failures) == 1
        assert "Empty the bucket" in failures[0].suggestions[0]

    def test_continue_policy_deletes_the_rest(self, store, clock, desired_three):
        reconciler = make_reconciler(store, clock, FailurePolicy.CONTINUE)
        created = reconciler.create(desired_three)
        store.fail("delete", "alpha-bucket")

        result = reconciler.delete(created.managed)

        assert result.managed.names() == ["alpha-bucket"]
        assert set(store.buckets) == {"alpha-bucket"}
