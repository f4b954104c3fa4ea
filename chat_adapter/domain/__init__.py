"""领域层模型与协议。

包含：
- models: 统一的 ChatMessage / ChatRequest / Chunk 模型。
- directives: /think、/no_think 推理指令的提取与回填。
- exceptions: 业务异常类型定义。
"""
