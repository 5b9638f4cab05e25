import os
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _float_list(raw: str):
    return [float(v) for v in raw.split(",") if v.strip()]


# Batch selection: m = UNCERTAIN_OVERSAMPLING * h
UNCERTAIN_OVERSAMPLING = 4

# Kernel k-means
KMEANS_MAX_ITERATIONS = int(os.getenv("KMEANS_MAX_ITERATIONS", "10"))
KMEANS_SEEDING = os.getenv("KMEANS_SEEDING", "farthest")  # farthest, random
RANDOM_STATE = int(os.getenv("RANDOM_STATE", "42"))

# Uncertainty scoring
SCORING_WORKERS = int(os.getenv("SCORING_WORKERS", "4"))

# SVM model selection
SVM_KERNEL = os.getenv("SVM_KERNEL", "rbf")
SVM_C_GRID = _float_list(os.getenv("SVM_C_GRID", "0.1,1,10,100"))
SVM_GAMMA_GRID = _float_list(os.getenv("SVM_GAMMA_GRID", "0.001,0.01,0.1,1"))
SVM_CV_FOLDS = int(os.getenv("SVM_CV_FOLDS", "3"))

MODEL_DIR = os.getenv("MODEL_DIR", os.path.join(PROJECT_ROOT, "models"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
