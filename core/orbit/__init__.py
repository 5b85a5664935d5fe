"""
轨道计算模块

- utils: 物理常数、J2摄动、坐标变换
- epoch: 纪元（YY*1000 + 年积日）时间工具
- ephemeris: 低精度太阳/月球星历
- propagator: SGP4与解析开普勒传播器
- visibility: 观测几何、地影、星等、多普勒与过境预报
"""
