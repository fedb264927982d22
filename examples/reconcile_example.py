"""Example usage of the reconciler and lister against a real account."""

from customs3.reconciler import FailurePolicy, Lister, Reconciler
from customs3.state import DesiredItem
from customs3.store import S3BucketStore
from customs3.utils import AWSClientManager, BucketError, CredentialContext, setup_logging


def build_store():
    """Resolve credentials from the environment and build an S3 store."""
    credentials = CredentialContext().resolve()
    return S3BucketStore.from_client_manager(AWSClientManager(credentials))


def example_lifecycle(store):
    """Example: create, verify, re-tag and delete two buckets."""
    print("=== Bucket lifecycle ===")

    reconciler = Reconciler(store, policy=FailurePolicy.CONTINUE)
    desired = [
        DesiredItem.from_declared("example-logs-bucket-0001", "team=infra"),
        DesiredItem.from_declared("example-assets-bucket-0001", {"owner": "web"}),
    ]

    created = reconciler.create(desired)
    for diagnostic in created.diagnostics:
        print(diagnostic.to_user_message())
    print(f"Managed: {created.managed.names()}")

    checked = reconciler.read(created.managed)
    print(f"Still present: {checked.managed.names()}")

    retagged = [DesiredItem.from_declared(d.name, "team=platform") for d in desired]
    updated = reconciler.update(retagged, previous=checked.managed)
    print(f"Re-tagged at {updated.managed.last_updated}")

    deleted = reconciler.delete(updated.managed)
    if deleted.managed.is_empty():
        print("All buckets deleted")
    else:
        print(f"Could not delete: {deleted.managed.names()}")


def example_list(store):
    """Example: list every bucket in the account."""
    print("\n=== List buckets ===")

    result = Lister(store).list()
    for bucket in result.buckets:
        print(f"  {bucket.creation_date}  {bucket.name}")
    for diagnostic in result.diagnostics:
        print(diagnostic.to_user_message())


if __name__ == '__main__':
    setup_logging('info', log_dir=None)

    try:
        store = build_store()
    except BucketError as e:
        print(e.to_user_message())
    else:
        example_list(store)
        example_lifecycle(store)
