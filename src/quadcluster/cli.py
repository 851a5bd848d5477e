"""
Command-line interface for quadcluster.

Provides commands for clustering a point file for a given camera and for
inspecting the quadtree built from it.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .bounds import BoundingBox
from .cluster import ClusterSet
from .duckdb_source import load_points
from .engine import ClusteringEngine, scaled_grid_size
from .errors import InvalidBounds
from .log import configure_logging
from .projection import MercatorProjection
from .quadtree import NODE_CAPACITY, QuadTree


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        type=Path,
        help="CSV or Parquet file with one point per row",
    )
    parser.add_argument(
        "--lat-column",
        type=str,
        default=None,
        help="Latitude column (default: lat or latitude)",
    )
    parser.add_argument(
        "--lng-column",
        type=str,
        default=None,
        help="Longitude column (default: lng, lon, long or longitude)",
    )
    parser.add_argument(
        "--node-capacity",
        type=int,
        default=NODE_CAPACITY,
        help=f"Points per quadtree leaf (default: {NODE_CAPACITY})",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="quadcluster",
        description="Cluster geo-located points for a map viewport",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit log events as JSON lines",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Cluster command
    cluster_parser = subparsers.add_parser(
        "cluster",
        help="Cluster the points visible from a camera",
    )
    _add_source_arguments(cluster_parser)
    cluster_parser.add_argument(
        "-z", "--zoom",
        type=float,
        required=True,
        help="Camera zoom level",
    )
    cluster_parser.add_argument(
        "--center",
        type=float,
        nargs=2,
        metavar=("LAT", "LNG"),
        default=(0.0, 0.0),
        help="Camera target (default: 0 0)",
    )
    cluster_parser.add_argument(
        "--size",
        type=int,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        default=(1080, 1920),
        help="Screen size in pixels (default: 1080 1920)",
    )
    cluster_parser.add_argument(
        "--density",
        type=float,
        default=1.0,
        help="Display density, dpi / 160 (default: 1.0)",
    )
    cluster_parser.add_argument(
        "--viewport",
        type=float,
        nargs=4,
        metavar=("LAT_MIN", "LNG_MIN", "LAT_MAX", "LNG_MAX"),
        default=None,
        help="Override the visible region derived from the camera",
    )
    cluster_parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Write the JSON result here instead of stdout",
    )

    # Stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show quadtree statistics for a point file",
    )
    _add_source_arguments(stats_parser)

    return parser


def build_tree(args: argparse.Namespace) -> QuadTree:
    """Load the point file named on the command line into a quadtree."""
    points = load_points(args.path, args.lat_column, args.lng_column)
    tree = QuadTree(capacity=args.node_capacity)
    tree.insert_many(points)
    return tree


def result_to_dict(result: ClusterSet) -> Dict[str, Any]:
    """JSON-friendly representation of a clustering result."""
    singletons: List[Dict[str, Any]] = []
    for point in result.singletons:
        lat, lng = point.position
        singletons.append({"lat": lat, "lng": lng, "payload": getattr(point, "payload", None)})

    clusters: List[Dict[str, Any]] = []
    for cluster in sorted(result.clusters, key=lambda c: -c.weight):
        lat, lng = cluster.center
        b = cluster.bounds
        clusters.append({
            "lat": lat,
            "lng": lng,
            "weight": cluster.weight,
            "bounds": [b.lat_min, b.lng_min, b.lat_max, b.lng_max],
        })

    singletons.sort(key=lambda s: (s["lat"], s["lng"]))
    return {"singletons": singletons, "clusters": clusters}


def cmd_cluster(args: argparse.Namespace) -> int:
    """Handle the cluster command."""
    try:
        tree = build_tree(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    width, height = args.size
    projection = MercatorProjection(args.zoom, tuple(args.center), width, height)
    try:
        viewport = BoundingBox(*args.viewport) if args.viewport else projection.visible_bounds()
    except InvalidBounds as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    grid_px = scaled_grid_size(args.zoom, args.density)
    engine = ClusteringEngine(tree)
    result = engine.run(viewport, projection, grid_px)

    output = {
        "zoom": args.zoom,
        "grid_px": grid_px,
        "viewport": [viewport.lat_min, viewport.lng_min, viewport.lat_max, viewport.lng_max],
        "points_in_viewport": engine.stats.points_in_viewport,
        **result_to_dict(result),
    }
    text = json.dumps(output, indent=2, default=str)

    if args.output:
        args.output.write_text(text)
        print(
            f"Wrote {len(output['clusters'])} clusters and "
            f"{len(output['singletons'])} markers to {args.output}"
        )
    else:
        print(text)
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle the stats command."""
    try:
        tree = build_tree(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Quadtree statistics for {args.path}:")
    print(f"  Points: {len(tree)}")
    print(f"  Node capacity: {tree.capacity}")
    print(f"  Nodes: {tree.node_count}")
    print(f"  Leaf nodes: {tree.leaf_count}")
    print(f"  Depth: {tree.depth}")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(args.log_level, json=args.log_json)

    if args.command == "cluster":
        return cmd_cluster(args)
    elif args.command == "stats":
        return cmd_stats(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
