# Copyright (c) Syntropy Systems
"""Run details page: data availability, tab routing and view composition."""
