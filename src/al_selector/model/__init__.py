from al_selector.model.port import ClassifierPort
from al_selector.model.svm import SVMClassifier

__all__ = ['ClassifierPort', 'SVMClassifier']
