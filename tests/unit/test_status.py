"""Tests for the status engine."""

from __future__ import annotations

import pytest

from memcached_operator.constants import (
    COND_AVAILABLE,
    COND_DEGRADED,
    COND_PROGRESSING,
    REASON_SECRET_NOT_FOUND,
)
from memcached_operator.models import Memcached
from memcached_operator.status import (
    ObservedReplicas,
    apply_conditions,
    build_status,
    compute_conditions,
    resolve_desired_replicas,
)


def _statuses(conditions):
    return {c["type"]: c["status"] for c in conditions}


def _deployment(ready=0, updated=0, total=0):
    return {"status": {"readyReplicas": ready, "updatedReplicas": updated, "replicas": total}}


class TestComputeConditions:
    """Test cases for compute_conditions."""

    @pytest.mark.parametrize("desired,observed,expected", [
        # fully rolled out
        (3, ObservedReplicas(ready=3, updated=3, total=3), ("True", "False", "False")),
        # partially ready
        (3, ObservedReplicas(ready=1, updated=3, total=3), ("True", "False", "True")),
        # rolling update in flight, every desired replica still ready
        (3, ObservedReplicas(ready=3, updated=1, total=4), ("True", "True", "False")),
        # scale-up pending
        (5, ObservedReplicas(ready=3, updated=3, total=3), ("True", "True", "True")),
        # nothing ready yet
        (2, ObservedReplicas(ready=0, updated=0, total=0), ("False", "True", "True")),
        # scaled to zero
        (0, ObservedReplicas(ready=0, updated=0, total=0), ("True", "False", "False")),
        # no deployment at all
        (1, None, ("False", "True", "True")),
    ])
    def test_rules(self, desired, observed, expected):
        """Test the Available/Progressing/Degraded truth table."""
        conditions = compute_conditions(desired, observed, hpa_managed=False, generation=1)

        assert [c["type"] for c in conditions] == [COND_AVAILABLE, COND_PROGRESSING, COND_DEGRADED]
        assert tuple(c["status"] for c in conditions) == expected

    def test_every_condition_is_stamped(self):
        """Test reason, message and generation are always set."""
        for observed in (None, ObservedReplicas(1, 1, 1)):
            for cond in compute_conditions(1, observed, hpa_managed=False, generation=7):
                assert cond["reason"]
                assert cond["message"]
                assert cond["observedGeneration"] == 7

    def test_hpa_marker(self):
        """Test the Available message marks autoscaler-managed counts."""
        available = compute_conditions(2, ObservedReplicas(2, 2, 2), hpa_managed=True, generation=1)[0]

        assert "(HPA-managed)" in available["message"]

    def test_missing_secrets(self):
        """Test missing Secrets force Degraded even when replicas are healthy."""
        degraded = compute_conditions(
            1, ObservedReplicas(1, 1, 1), hpa_managed=False, generation=1, missing_secrets=["a", "b"]
        )[2]

        assert degraded["status"] == "True"
        assert degraded["reason"] == REASON_SECRET_NOT_FOUND
        assert degraded["message"] == "Referenced Secrets not found: a, b"

    def test_single_missing_secret(self):
        """Test the message for one missing Secret."""
        degraded = compute_conditions(1, None, hpa_managed=False, generation=1, missing_secrets=["sasl"])[2]

        assert degraded["message"] == "Referenced Secrets not found: sasl"


class TestResolveDesiredReplicas:
    """Test cases for resolve_desired_replicas."""

    def test_nil_defaults_to_one(self, make_memcached):
        """Test an unset replica count means 1."""
        mc = Memcached.from_dict(make_memcached())

        assert resolve_desired_replicas(mc, None, hpa_managed=False) == 1

    def test_hpa_uses_observed_total(self, make_memcached):
        """Test autoscaling mode measures against the Deployment's total."""
        mc = Memcached.from_dict(make_memcached(spec={"replicas": 2}))

        assert resolve_desired_replicas(mc, ObservedReplicas(total=5), hpa_managed=True) == 5


class TestApplyConditions:
    """Test cases for apply_conditions."""

    def test_timestamps_move_only_on_status_change(self):
        """Test lastTransitionTime survives a recompute with the same status."""
        first = apply_conditions(
            None, compute_conditions(1, ObservedReplicas(1, 1, 1), False, 1), now="2024-01-01T00:00:00Z"
        )
        second = apply_conditions(
            first, compute_conditions(1, ObservedReplicas(0, 1, 1), False, 2), now="2024-02-01T00:00:00Z"
        )

        by_type = {c["type"]: c for c in second}
        assert by_type[COND_PROGRESSING]["lastTransitionTime"] == "2024-01-01T00:00:00Z"
        assert by_type[COND_DEGRADED]["lastTransitionTime"] == "2024-02-01T00:00:00Z"
        assert by_type[COND_DEGRADED]["observedGeneration"] == 2

    def test_does_not_mutate_existing(self):
        """Test the existing list is left as it was."""
        existing = [{"type": COND_AVAILABLE, "status": "False", "lastTransitionTime": "t"}]

        apply_conditions(existing, compute_conditions(1, ObservedReplicas(1, 1, 1), False, 1))

        assert existing == [{"type": COND_AVAILABLE, "status": "False", "lastTransitionTime": "t"}]


class TestBuildStatus:
    """Test cases for build_status."""

    def test_manual_mode(self, make_memcached):
        """Test status fields from a ready Deployment."""
        mc = Memcached.from_dict(make_memcached(spec={"replicas": 2}, generation=4))

        status = build_status(mc, _deployment(2, 2, 2), hpa_managed=False)

        assert status["observedGeneration"] == 4
        assert status["readyReplicas"] == 2
        assert _statuses(status["conditions"]) == {
            COND_AVAILABLE: "True",
            COND_PROGRESSING: "False",
            COND_DEGRADED: "False",
        }

    def test_hpa_mode(self, make_memcached):
        """Test autoscaling mode is healthy at whatever size the autoscaler chose."""
        mc = Memcached.from_dict(make_memcached(spec={"replicas": 2, "autoscaling": {"enabled": True}}))

        status = build_status(mc, _deployment(4, 4, 4), hpa_managed=True)

        assert _statuses(status["conditions"])[COND_DEGRADED] == "False"

    def test_no_deployment(self, make_memcached):
        """Test the worst case when the Deployment is gone."""
        status = build_status(Memcached.from_dict(make_memcached()), None, hpa_managed=False)

        assert status["readyReplicas"] == 0
        assert _statuses(status["conditions"]) == {
            COND_AVAILABLE: "False",
            COND_PROGRESSING: "True",
            COND_DEGRADED: "True",
        }

    def test_missing_status_fields(self, make_memcached):
        """Test a Deployment without status counts as zero everywhere."""
        status = build_status(Memcached.from_dict(make_memcached()), {}, hpa_managed=False)

        assert _statuses(status["conditions"])[COND_AVAILABLE] == "False"
