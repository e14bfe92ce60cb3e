"""
GymProgress Analytics — Configuration

Domain thresholds for the analytics engine plus the environment-driven
settings of the history loader. Everything here is read-only at runtime.
"""
import os

# ── History source ───────────────────────────────────────────────────
HISTORY_URL = os.environ.get("HISTORY_URL", "")
HISTORY_API_KEY = os.environ.get("HISTORY_API_KEY", "")
HISTORY_FILE = os.environ.get("HISTORY_FILE", "")

# Storage key the app writes the workout history under
HISTORY_STORAGE_KEY = "gymProgress_workout_history"

# Rate limiting / retries for remote history
RATE_LIMIT_DELAY = 0.35  # seconds between requests
MAX_RETRIES = 3
RETRY_BACKOFF = 2  # exponential backoff multiplier
REQUEST_TIMEOUT = 15

# ── Calendar ─────────────────────────────────────────────────────────
# pandas weekday numbering (Monday=0). The app's weeks start on Sunday.
WEEK_START_DAY = 6
WEEKDAY_SHORT = ["Lun", "Mar", "Mié", "Jue", "Vie", "Sáb", "Dom"]  # indexed by pandas weekday

# ── Muscle groups ────────────────────────────────────────────────────
UNLABELED_MUSCLE_GROUP = "Otros"

# ═════════════════════════════════════════════════════════════════════
# WORKLOAD — ACWR
# ═════════════════════════════════════════════════════════════════════

ACUTE_DAYS = 7
CHRONIC_DAYS = 28
CHRONIC_WEEKS = CHRONIC_DAYS // ACUTE_DAYS
NEUTRAL_ACWR = 1.0

# Safe zone: 0.8 – 1.3. Warning: 1.3 – 1.5. Risk: >1.5
ACWR_DANGER = 1.5  # exclusive
ACWR_OVERREACHING = 1.3  # exclusive
ACWR_OPTIMAL_FLOOR = 0.8  # inclusive
ACWR_LABELS = {
    "danger": "🔴 Peligro",
    "overreaching": "🟡 Sobrecarga",
    "optimal": "🟢 Óptimo",
    "undertrained": "🔵 Infraentreno",
    "insufficient_data": "⬜ Sin datos",
}

TRAINING_SUGGESTIONS = {
    "high": "Tu carga es alta. Reduce el volumen un 20% hoy.",
    "low": "Estás fresco. Puedes aumentar la intensidad.",
    "sweet_spot": "Estás en el punto dulce. Mantén el plan.",
}

# ═════════════════════════════════════════════════════════════════════
# READINESS
# ═════════════════════════════════════════════════════════════════════

WELLNESS_SCALE = (1, 3)
READINESS_WEIGHTS = {
    "sleep": 35,
    "energy": 35,
    "stress": 15,
    "soreness": 15,
}
# Higher reported value is worse for these axes
INVERTED_AXES = {"stress", "soreness"}
DEFAULT_WELLNESS = {"sleep": 2, "energy": 2, "stress": 2, "soreness": 1}

# (status, exclusive lower bound, label) — anything below the last is at_risk
READINESS_BANDS = [
    ("elite", 85, "ELITE"),
    ("optimal", 65, "ÓPTIMO"),
    ("moderate", 40, "MODERADO"),
]
READINESS_FLOOR = ("at_risk", "RIESGO")

# ═════════════════════════════════════════════════════════════════════
# GOALS
# ═════════════════════════════════════════════════════════════════════

GOAL_TYPES = ("sessions", "prs", "volume")

DEFAULT_GOAL_SETTINGS = {
    "targetSessionsPerMonth": 12,
    "targetVolumePerWeek": 15000,
    "targetPRsPerMonth": 2,
    "activeGoals": ["sessions", "volume"],
}

GOAL_TARGET_KEYS = {
    "sessions": "targetSessionsPerMonth",
    "prs": "targetPRsPerMonth",
    "volume": "targetVolumePerWeek",
}

GOAL_LABELS = {
    "sessions": "Consistencia Mensual",
    "prs": "Récords del Mes",
    "volume": "Carga Semanal",
}

DEFAULT_WEEKLY_SESSIONS = 4

# ═════════════════════════════════════════════════════════════════════
# STREAK & TREND BANDS
# ═════════════════════════════════════════════════════════════════════

# (tier, inclusive upper bound or None, message template)
STREAK_BADGES = [
    ("start", 0, "¡Empieza tu racha hoy!"),
    ("first_day", 1, "Buen inicio. ¡Sigue mañana!"),
    ("on_track", 6, "¡Vas bien! {streak} días seguidos"),
    ("unstoppable", 29, "¡IMPARABLE! {streak} días"),
    ("legend", None, "¡LEYENDA! {streak} días"),
]

# Week-over-week volume change, evaluated top-down
# (insight, lower bound, inclusive?, message)
VOLUME_TREND_BANDS = [
    ("overload", 15, False, "¡Sobrecarga explosiva! Estás ganando fuerza rápido."),
    ("steady", 5, True, "Progreso constante. Mantén este ritmo."),
    ("consolidation", -5, False, "Fase de consolidación. La base es sólida."),
]
VOLUME_TREND_FLOOR = ("deload", "Descarga detectada. Escucha a tu cuerpo.")

RECENT_PR_COUNT = 3
