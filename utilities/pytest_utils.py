import logging
import os
import shutil

from utilities.config import ENVIRONMENT_OPTIONS, get_default_kubeconfig, get_option_default

LOGGER = logging.getLogger(__name__)


def separator(symbol_, val=None):
    terminal_width = shutil.get_terminal_size(fallback=(120, 40))[0]
    if not val:
        return f"{symbol_ * terminal_width}"

    sepa = int((terminal_width - len(val) - 2) // 2)
    return f"{symbol_ * sepa} {val} {symbol_ * sepa}"


def add_environment_options(parser):
    """
    Register the cluster and operator options; each defaults to its environment variable.
    """
    cluster_group = parser.getgroup(name="Cluster")
    operator_group = parser.getgroup(name="Operator")
    cli_group = parser.getgroup(name="CLI")

    cluster_group.addoption(
        "--cluster",
        default="",
        help="Cluster to test against. Defaults to the current cluster in kubeconfig.",
    )
    cluster_group.addoption(
        "--kubeconfig",
        default=get_default_kubeconfig(),
        help="Path to the kubeconfig file to use, its current-context is used. Defaults to $KUBECONFIG.",
    )
    for dest, (env_var, help_text) in ENVIRONMENT_OPTIONS.items():
        group = cli_group if dest == "tkn_version" else operator_group
        group.addoption(
            f"--{dest.replace('_', '-')}",
            dest=dest,
            default=get_option_default(dest=dest),
            help=f"{help_text}. Defaults to ${env_var}.",
        )


def remove_stale_log_file(log_file):
    if os.path.exists(log_file):
        LOGGER.info(f"Removing log file from a previous run: {log_file}")
        os.remove(log_file)
