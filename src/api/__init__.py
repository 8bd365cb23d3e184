"""Public HTTP routes."""
