"""
Thermal alerting core.

Turns a stream of calibrated 2-D temperature frames into actionable alerts
and keeps an adaptive working temperature range in step with the scene.

This package provides:
- Data models for frames, alert rules, alerts, ranges and profiles
- Spatial clustering and pluggable anomaly detectors
- The alert rule engine with minimum-duration, hysteresis and cooldown gating
- The range controller with profiles, auto-ranging, isotherms and
  environmental adaptation
- Notification dispatch to delivery channels
- YAML configuration and structured logging
"""

__version__ = "0.1.0"
