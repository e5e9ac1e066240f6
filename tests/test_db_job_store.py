"""Regression tests for the SQLAlchemy job store on a migrated SQLite database."""

from __future__ import annotations

import pytest

from wpt_monitor.db import DuplicateJobKeyError, JobStoreCapacityError, SQLAlchemyJobStoreService
from wpt_monitor.domain import PendingJob


def test_job_store_put_list_and_remove(migrated_engine) -> None:
    """Jobs are listed in slot order and removal frees the slot."""

    job_store = SQLAlchemyJobStoreService(engine=migrated_engine, capacity=3)
    assert job_store.db_job_is_empty() is True

    job_store.db_job_put(PendingJob(target_key="home", handle="https://wpt/jsonResult.php?test=a"))
    job_store.db_job_put(PendingJob(target_key="shop", handle="https://wpt/jsonResult.php?test=b"))

    assert job_store.db_job_list_all() == [
        PendingJob(target_key="home", handle="https://wpt/jsonResult.php?test=a"),
        PendingJob(target_key="shop", handle="https://wpt/jsonResult.php?test=b"),
    ]
    assert job_store.db_job_is_empty() is False

    assert job_store.db_job_remove_by_key("home") is True
    assert job_store.db_job_remove_by_key("home") is False
    assert job_store.db_job_list_all() == [PendingJob(target_key="shop", handle="https://wpt/jsonResult.php?test=b")]

    job_store.db_job_put(PendingJob(target_key="blog", handle="h-c"))
    assert [job.target_key for job in job_store.db_job_list_all()] == ["blog", "shop"]


def test_job_store_rejects_duplicate_key(migrated_engine) -> None:
    """A key already outstanding cannot be put twice."""

    job_store = SQLAlchemyJobStoreService(engine=migrated_engine, capacity=2)
    job_store.db_job_put(PendingJob(target_key="home", handle="h-1"))

    with pytest.raises(DuplicateJobKeyError):
        job_store.db_job_put(PendingJob(target_key="home", handle="h-2"))
    assert job_store.db_job_list_all() == [PendingJob(target_key="home", handle="h-1")]


def test_job_store_rejects_put_beyond_capacity(migrated_engine) -> None:
    """Every slot occupied raises a capacity error."""

    job_store = SQLAlchemyJobStoreService(engine=migrated_engine, capacity=1)
    job_store.db_job_put(PendingJob(target_key="home", handle="h-1"))

    with pytest.raises(JobStoreCapacityError):
        job_store.db_job_put(PendingJob(target_key="shop", handle="h-2"))


def test_job_store_state_is_visible_to_a_new_service_instance(migrated_engine) -> None:
    """Jobs written by one instance are read by another sharing the database."""

    SQLAlchemyJobStoreService(engine=migrated_engine, capacity=2).db_job_put(PendingJob(target_key="home", handle="h"))

    assert SQLAlchemyJobStoreService(engine=migrated_engine, capacity=2).db_job_list_all() == [
        PendingJob(target_key="home", handle="h")
    ]


def test_job_store_rejects_blank_key(migrated_engine) -> None:
    """Blank keys are refused before touching the table."""

    job_store = SQLAlchemyJobStoreService(engine=migrated_engine, capacity=1)

    with pytest.raises(ValueError):
        job_store.db_job_put(PendingJob(target_key="  ", handle="h"))
    assert job_store.db_job_remove_by_key("") is False
