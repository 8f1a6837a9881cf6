#!/usr/bin/env python3
"""
routing_dry_run.py

Compute the bucket routing table for a JSON split manifest, the way a join
vertex would on the cluster, and print a summary.

Examples:
  ./routing_dry_run.py manifest.json
  ./routing_dry_run.py manifest.json --verbose --log-dir /tmp/routing-logs
"""

import sys

from bucket_routing.dry_run import main

if __name__ == "__main__":
    sys.exit(main())
