"""XAI Lab - SHAP explanations of claim-frequency models and pre-trained image classification."""

__version__ = "1.0.0"
