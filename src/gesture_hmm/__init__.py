"""gesture-hmm - Hand trajectory gesture recognition with discrete HMMs."""

__version__ = "0.1.0"

from gesture_hmm.sequence import Point, PointSequence
from gesture_hmm.capture import CaptureState, CaptureStateMachine, Posture
from gesture_hmm.parametrize import parametrize, parametrize_training_set
from gesture_hmm.hmm import HMM, ModelBank, blr_init
from gesture_hmm.algorithms import TrainingResult, baum_welch, forward, forward_backward
from gesture_hmm.classifier import GestureClassifier, ClassificationResult, NO_MATCH
from gesture_hmm.storage import GesturePrototype, ModelFileError
from gesture_hmm.training import make_training_set, model_from_prototype, train_bank
from gesture_hmm.config import EngineConfig, load_config
from gesture_hmm.pipeline import GesturePipeline, GestureEvent
from gesture_hmm.recorder import FrameRecorder, FramePlayer
