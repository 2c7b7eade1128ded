"""
预估输入token缓存

按请求ID保存分发前估算的输入token数量。
流式响应在上游没有返回usage时，用它补全 prompt_tokens。
"""

from collections import OrderedDict


class PromptTokenCache:
    """有界的 request_id -> token 数量缓存，超出容量时淘汰最早的条目"""

    def __init__(self, max_entries: int = 1024):
        self.max_entries = max_entries
        self._entries: OrderedDict[str, int] = OrderedDict()

    def put(self, request_id: str, tokens: int) -> None:
        if not request_id or tokens <= 0:
            return
        self._entries[request_id] = tokens
        self._entries.move_to_end(request_id)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def get(self, request_id: str | None, pop: bool = False) -> int | None:
        if not request_id:
            return None
        if pop:
            return self._entries.pop(request_id, None)
        return self._entries.get(request_id)

    def discard(self, request_id: str | None) -> None:
        if request_id:
            self._entries.pop(request_id, None)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


# 全局缓存
prompt_token_cache = PromptTokenCache()
