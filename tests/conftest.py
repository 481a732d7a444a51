import os

from embedding_projector.utils.logging.logging_manager import WANDB_DISABLED_ENV_VAR

os.environ.setdefault(WANDB_DISABLED_ENV_VAR, "true")
os.environ.setdefault("WANDB_MODE", "disabled")
