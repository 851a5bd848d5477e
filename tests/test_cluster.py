"""Tests for clusters and cluster sets."""

import pytest
from quadcluster.bounds import BoundingBox
from quadcluster.cluster import Cluster, ClusterSet
from quadcluster.points import GeoPoint


class TestCluster:
    """Tests for Cluster class."""

    def test_singleton(self):
        p = GeoPoint(10, 20)
        c = Cluster(p)
        assert c.weight == 1
        assert len(c) == 1
        assert not c.is_cluster()
        assert c.seed is p
        assert c.center == (10, 20)
        assert c.bounds == BoundingBox.around(10, 20)

    def test_add_updates_center_and_bounds(self):
        c = Cluster(GeoPoint(10.0, 10.0))
        c.add(GeoPoint(10.1, 10.1))
        assert c.weight == 2
        assert c.is_cluster()
        lat, lng = c.center
        assert lat == pytest.approx(10.05)
        assert lng == pytest.approx(10.05)
        assert c.bounds == BoundingBox(10.0, 10.0, 10.1, 10.1)

    def test_bounds_enclose_all_members(self):
        c = Cluster(GeoPoint(0, 0))
        for lat, lng in [(5, -3), (-2, 7), (1, 1)]:
            c.add(GeoPoint(lat, lng))
        assert c.bounds == BoundingBox(-2, -3, 5, 7)
        assert all(c.bounds.covers(*p.position) for p in c)

    def test_members_in_insertion_order(self):
        points = [GeoPoint(i, i) for i in range(4)]
        c = Cluster(points[0])
        for p in points[1:]:
            c.add(p)
        assert list(c.members) == points
        assert list(c) == points
        assert points[2] in c

    def test_equality_ignores_order(self):
        a, b, d = GeoPoint(0, 0), GeoPoint(1, 1), GeoPoint(2, 2)
        c1 = Cluster(a)
        c1.add(b)
        c1.add(d)
        c2 = Cluster(d)
        c2.add(a)
        c2.add(b)
        assert c1 == c2
        assert hash(c1) == hash(c2)
        assert c1.center == pytest.approx(c2.center)

    def test_equality_uses_point_identity(self):
        """Points at the same position are still different members."""
        c1 = Cluster(GeoPoint(0, 0))
        c1.add(GeoPoint(1, 1))
        c2 = Cluster(GeoPoint(0, 0))
        c2.add(GeoPoint(1, 1))
        assert c1 != c2

    def test_different_members_not_equal(self):
        a, b, d = GeoPoint(0, 0), GeoPoint(1, 1), GeoPoint(2, 2)
        c1 = Cluster(a)
        c1.add(b)
        c2 = Cluster(a)
        c2.add(d)
        assert c1 != c2

    def test_not_equal_to_other_types(self):
        assert Cluster(GeoPoint(0, 0)) != "cluster"


class TestClusterSet:
    """Tests for ClusterSet class."""

    def test_empty(self):
        s = ClusterSet()
        assert s.is_empty()
        assert len(s) == 0
        assert s.points() == []

    def test_points_and_len(self):
        a, b, d = GeoPoint(0, 0), GeoPoint(1, 1), GeoPoint(2, 2)
        c = Cluster(b)
        c.add(d)
        s = ClusterSet(frozenset([a]), frozenset([c]))
        assert len(s) == 2
        assert sorted(map(id, s.points())) == sorted(map(id, [a, b, d]))

    def test_overlap_rejected(self):
        """A point cannot be both a singleton and a cluster member."""
        a, b = GeoPoint(0, 0), GeoPoint(1, 1)
        c = Cluster(a)
        c.add(b)
        with pytest.raises(ValueError):
            ClusterSet(frozenset([a]), frozenset([c]))

    def test_single_member_cluster_rejected(self):
        with pytest.raises(ValueError):
            ClusterSet(frozenset(), frozenset([Cluster(GeoPoint(0, 0))]))

    def test_value_equality(self):
        a, b = GeoPoint(0, 0), GeoPoint(1, 1)
        c1 = Cluster(a)
        c1.add(b)
        c2 = Cluster(b)
        c2.add(a)
        assert ClusterSet(frozenset(), frozenset([c1])) == ClusterSet(frozenset(), frozenset([c2]))
