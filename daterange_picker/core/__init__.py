"""
核心逻辑包: 预设、日历窗口、校验和选择状态机 (不依赖任何控件)。
"""
