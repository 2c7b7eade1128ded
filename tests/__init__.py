"""
测试模块

测试覆盖:
- 模型ID映射测试
- 请求/响应/流式转换测试
- 请求校验测试
- 限流器测试
- HTTP重试测试
- 提供商适配器与统一客户端测试
- 配置管理测试

所有上游HTTP调用都通过 respx 模拟，不访问真实网络。
"""
