"""
Anomaly detection and alert lifecycle.

This module contains the detectors, spatial clustering, gating state, the
rule engine and notification dispatch.

Components:
    clustering: SpatialClusterer for grouping flagged pixels
    detectors: Threshold and statistical detectors plus DetectorRegistry
    persistence: PersistenceTracker for min_duration gating
    cooldown: CooldownScheduler for cancelable per-location cooldowns
    hysteresis: HysteresisLatch for re-arm dead-bands
    engine: AlertRuleEngine for rule evaluation and the alert lifecycle
    dispatcher: NotificationDispatcher for channel fan-out
    channels/: Alert notification channels (log, callback, sound)

Example:
    >>> from thermosentry.detection import AlertRuleEngine, NotificationDispatcher
    >>>
    >>> dispatcher = NotificationDispatcher(channels={NotificationMethod.LOG: LogChannel()})
    >>> engine = AlertRuleEngine(notifier=dispatcher)
    >>> alerts = engine.process_frame(frame)
"""

from thermosentry.detection.clustering import Cluster, SpatialClusterer, single_cluster
from thermosentry.detection.detectors import (
    Detection,
    Detector,
    DetectorRegistry,
    HighTemperatureDetector,
    LowTemperatureDetector,
    NullDetector,
    StatisticalAnomalyDetector,
    create_default_registry,
    DEFAULT_ANOMALY_RADIUS,
    DEFAULT_TEMPERATURE_RADIUS,
)
from thermosentry.detection.persistence import (
    PersistenceTracker,
    build_location_key,
)
from thermosentry.detection.cooldown import CooldownScheduler
from thermosentry.detection.hysteresis import HysteresisLatch
from thermosentry.detection.engine import (
    AlertRuleEngine,
    AlertNotifier,
    DEFAULT_RULES,
    DEFAULT_HISTORY_LIMIT,
)
from thermosentry.detection.dispatcher import (
    AlertChannel,
    NotificationDispatcher,
    DEFAULT_QUEUE_SIZE,
)

__all__ = [
    # Clustering
    "Cluster",
    "SpatialClusterer",
    "single_cluster",
    # Detectors
    "Detection",
    "Detector",
    "DetectorRegistry",
    "HighTemperatureDetector",
    "LowTemperatureDetector",
    "StatisticalAnomalyDetector",
    "NullDetector",
    "create_default_registry",
    "DEFAULT_TEMPERATURE_RADIUS",
    "DEFAULT_ANOMALY_RADIUS",
    # Gating
    "PersistenceTracker",
    "build_location_key",
    "CooldownScheduler",
    "HysteresisLatch",
    # Engine
    "AlertRuleEngine",
    "AlertNotifier",
    "DEFAULT_RULES",
    "DEFAULT_HISTORY_LIMIT",
    # Dispatcher
    "AlertChannel",
    "NotificationDispatcher",
    "DEFAULT_QUEUE_SIZE",
]
