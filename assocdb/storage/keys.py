"""Storage keys: one per entity collection, plus seasons and settings."""

MEMBERS = 'assoc_members'
ACTIVITIES = 'assoc_activities'
PAYMENTS = 'assoc_payments'
TASKS = 'assoc_tasks'
CALENDAR_EVENTS = 'assoc_events'
MEMBERSHIP_TYPES = 'assoc_membership_types'
PAYMENT_METHODS = 'assoc_payment_methods'
EVENT_TYPES = 'assoc_event_types'
SEASONS = 'assoc_seasons'
SETTINGS = 'assoc_settings'

# Collections partitioned by season name
SEASON_SCOPED = (MEMBERS, ACTIVITIES, PAYMENTS)

# Every list-valued key, in export order
COLLECTIONS = (
    MEMBERS,
    ACTIVITIES,
    PAYMENTS,
    TASKS,
    CALENDAR_EVENTS,
    MEMBERSHIP_TYPES,
    PAYMENT_METHODS,
    EVENT_TYPES,
    SEASONS,
)

ALL_KEYS = COLLECTIONS + (SETTINGS,)
