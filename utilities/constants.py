# Timeouts
TIMEOUT_1SEC = 1
TIMEOUT_5SEC = 5
TIMEOUT_10SEC = 10
TIMEOUT_30SEC = 30
TIMEOUT_1MIN = 60
TIMEOUT_5MIN = 5 * 60
TIMEOUT_10MIN = 10 * 60
TIMEOUT_20MIN = 20 * 60

# Namespaces
OPERATORS_NAMESPACE = "openshift-operators"
MARKETPLACE_NAMESPACE = "openshift-marketplace"
TARGET_NAMESPACE = "openshift-pipelines"

# OLM
DEFAULT_SUBSCRIPTION_NAME = "openshift-pipelines-operator-rh"
DEFAULT_CATALOG_SOURCE = "redhat-operators"
DEFAULT_CHANNEL = "latest"
INSTALL_PLAN_AUTOMATIC = "Automatic"
INSTALLED_CSV_NONE = "<none>"

# Tekton operator custom resources
TEKTON_OPERATOR_API_GROUP = "operator.tekton.dev"
TEKTON_CONFIG_NAME = "config"
TEKTON_PIPELINE_NAME = "pipeline"
TEKTON_TRIGGER_NAME = "trigger"
TEKTON_DASHBOARD_NAME = "dashboard"
TEKTON_ADDON_NAME = "addon"

PIPELINE_CONTROLLER_NAME = "tekton-pipelines-controller"
PIPELINE_WEBHOOK_NAME = "tekton-pipelines-webhook"
TRIGGER_CONTROLLER_NAME = "tekton-triggers-controller"
TRIGGER_WEBHOOK_NAME = "tekton-triggers-webhook"

# Status values
PHASE_SUCCEEDED = "Succeeded"
PHASE_COMPLETE = "Complete"
CONDITION_READY = "Ready"
CONDITION_SUCCEEDED = "Succeeded"
CONDITION_STATUS_TRUE = "True"
CONDITION_STATUS_FALSE = "False"
CONDITION_STATUS_UNKNOWN = "Unknown"


class RunStatus:
    SUCCESSFUL = "successful"
    FAILURE = "failure"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


# Succeeded condition reasons of a run that finished unsuccessfully; any other reason is a failure
RUN_TIMEOUT_REASONS = {"PipelineRunTimeout", "TaskRunTimeout"}
RUN_CANCELLED_REASONS = {"Cancelled", "PipelineRunCancelled", "TaskRunCancelled", "StoppedRunFinally"}

# Labels Tekton sets on runs and propagates to the resources they create
PIPELINE_LABEL = "tekton.dev/pipeline"
PIPELINE_RUN_LABEL = "tekton.dev/pipelineRun"
TASK_LABEL = "tekton.dev/task"
TASK_RUN_LABEL = "tekton.dev/taskRun"
