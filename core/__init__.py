"""
核心模块 - 轨道传播与过境预报引擎

包含数据模型、轨道传播、可见性几何与过境预报等核心功能
"""
