"""
Sulu_Sync - Site Export/Import Toolkit for Content-Management Installations

A small, production-oriented toolkit for copying a complete installation
(content repository, relational database and uploaded assets) from one
deployment to another. The exporting side publishes three secret-keyed
artifacts into its web directory; the importing side fetches them over HTTP
and replays them onto the local installation.

Designed for predictable, strictly ordered execution with clear failure reporting.
"""

__version__ = "0.1.0"
__author__ = "RhythmX"
