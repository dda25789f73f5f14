"""Constants for the Memcached Operator."""

# API Group
API_GROUP = "memcached.c5c3.io"
API_VERSION = "v1beta1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"
PLURAL_MEMCACHED = "memcacheds"

# Resource Kinds
KIND_MEMCACHED = "Memcached"
KIND_DEPLOYMENT = "Deployment"
KIND_SERVICE = "Service"
KIND_PDB = "PodDisruptionBudget"
KIND_SERVICE_MONITOR = "ServiceMonitor"
KIND_NETWORK_POLICY = "NetworkPolicy"
KIND_HPA = "HorizontalPodAutoscaler"
KIND_SECRET = "Secret"

# apiVersion of each owned kind
OWNED_API_VERSIONS = {
    KIND_DEPLOYMENT: "apps/v1",
    KIND_SERVICE: "v1",
    KIND_PDB: "policy/v1",
    KIND_SERVICE_MONITOR: "monitoring.coreos.com/v1",
    KIND_NETWORK_POLICY: "networking.k8s.io/v1",
    KIND_HPA: "autoscaling/v2",
    KIND_SECRET: "v1",
}

# Labels
LABEL_NAME = "app.kubernetes.io/name"
LABEL_INSTANCE = "app.kubernetes.io/instance"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"
APP_NAME = "memcached"
MANAGED_BY = "memcached-operator"

# Annotations (pod template)
ANNOTATION_SECRET_HASH = f"{API_GROUP}/secret-hash"
ANNOTATION_RESTART_TRIGGER = f"{API_GROUP}/restart-trigger"

# Field Manager
FIELD_MANAGER = "memcached-operator"

# Conflict handling
MAX_CONFLICT_RETRIES = 5

# Workload defaults
DEFAULT_REPLICAS = 1
DEFAULT_IMAGE = "memcached:1.6"
DEFAULT_MAX_MEMORY_MB = 64
DEFAULT_MAX_CONNECTIONS = 1024
DEFAULT_THREADS = 4
DEFAULT_MAX_ITEM_SIZE = "1m"
DEFAULT_EXPORTER_IMAGE = "prom/memcached-exporter:v0.15.4"
DEFAULT_PRE_STOP_DELAY_SECONDS = 10
DEFAULT_TERMINATION_GRACE_PERIOD_SECONDS = 30

# Scrape-target defaults
DEFAULT_SCRAPE_INTERVAL = "30s"
DEFAULT_SCRAPE_TIMEOUT = "10s"

# Autoscaler defaults
DEFAULT_CPU_UTILIZATION = 80
DEFAULT_SCALE_DOWN_STABILIZATION_SECONDS = 300

# Ports
MEMCACHED_PORT = 11211
MEMCACHED_PORT_NAME = "memcached"
TLS_PORT = MEMCACHED_PORT + 1
TLS_PORT_NAME = "memcached-tls"
METRICS_PORT = 9150
METRICS_PORT_NAME = "metrics"

# Volumes
SASL_VOLUME_NAME = "sasl-credentials"
SASL_MOUNT_PATH = "/etc/memcached/sasl"
SASL_PASSWORD_FILE = "password-file"
TLS_VOLUME_NAME = "tls-certificates"
TLS_MOUNT_PATH = "/etc/memcached/tls"

# Anti-affinity presets
ANTI_AFFINITY_SOFT = "soft"
ANTI_AFFINITY_HARD = "hard"
HOSTNAME_TOPOLOGY_KEY = "kubernetes.io/hostname"

# Condition Types
COND_AVAILABLE = "Available"
COND_PROGRESSING = "Progressing"
COND_DEGRADED = "Degraded"

# Condition Reasons
REASON_AVAILABLE = "Available"
REASON_UNAVAILABLE = "Unavailable"
REASON_PROGRESSING = "Progressing"
REASON_PROGRESSING_COMPLETE = "ProgressingComplete"
REASON_DEGRADED = "Degraded"
REASON_NOT_DEGRADED = "NotDegraded"
REASON_SECRET_NOT_FOUND = "SecretNotFound"

# Event Reasons
EVENT_REASON_CREATED = "Created"
EVENT_REASON_UPDATED = "Updated"

# Per-resource reconcile outcomes
RESULT_CREATED = "created"
RESULT_UPDATED = "updated"
RESULT_UNCHANGED = "unchanged"
RESULT_DELETED = "deleted"

# Whole-reconcile outcomes
RECONCILE_SUCCESS = "success"
RECONCILE_ERROR = "error"

# Warning event on a failed reconcile
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
