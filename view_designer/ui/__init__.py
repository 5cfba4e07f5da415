"""View designer presentation-facing package.

Hosts the controllers that mediate between an editor front-end (canvas,
property panels, browsers) and the core services. No UI toolkit code lives
here.
"""
