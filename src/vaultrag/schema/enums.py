from enum import Enum


class ApiProvider(str, Enum):
    OPENAI = "openai"
    OPENAI_COMPATIBLE = "openai-compatible"  # vLLM, LM Studio, llama.cpp server...
    OLLAMA = "ollama"
    FASTEMBED = "fastembed"  # Local ONNX models, no server


class WorkspaceItemType(str, Enum):
    FOLDER = "folder"
    TAG = "tag"
